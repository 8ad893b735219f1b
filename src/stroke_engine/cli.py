"""StrokeEngine CLI.

Usage:
    stroke-engine templates    — List a template library
    stroke-engine classify     — Classify labeled gestures against a library
    stroke-engine replay       — Replay a recorded pointer session
    stroke-engine benchmark    — Measure classification latency
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer

from stroke_engine.errors import InsufficientPoints, TemplateLoadError
from stroke_engine.templates import TemplateLibrary

app = typer.Typer(
    name="stroke-engine",
    help="✍️  Multi-stroke gesture capture and point-cloud classification.",
    add_completion=False,
)


def _setup_logging(level: str):
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_library(path: Optional[str]) -> TemplateLibrary:
    """Load a library or exit with status 1 on a malformed template."""
    if path is None:
        return TemplateLibrary.with_defaults()
    try:
        return TemplateLibrary.from_path(path)
    except TemplateLoadError as e:
        typer.echo(f"❌ Template load failed: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def templates(
    path: Optional[str] = typer.Argument(None, help="Template file or directory (default: built-ins)"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """List the templates in a library."""
    _setup_logging(log_level)
    library = _load_library(path)

    typer.echo(f"📚 {len(library)} templates, {len(library.labels)} labels")
    for template in library:
        typer.echo(
            f"   {template.label:20s} strokes={template.stroke_count}  points={len(template)}"
        )


@app.command()
def classify(
    library_path: str = typer.Argument(..., help="Template file or directory"),
    gestures_path: str = typer.Argument(..., help="Labeled gestures to classify (same format)"),
    threshold: float = typer.Option(0.3, help="Acceptance threshold"),
    points: int = typer.Option(32, help="Resample point count"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Classify each labeled gesture and check it against its own label."""
    from stroke_engine.decision import decide
    from stroke_engine.recognizer import PointCloudRecognizer

    _setup_logging(log_level)
    library = _load_library(library_path)
    candidates = _load_library(gestures_path)

    if len(library) == 0:
        typer.echo("❌ Template library is empty", err=True)
        raise typer.Exit(1)

    recognizer = PointCloudRecognizer(n_points=points)
    accepted = 0
    for candidate in candidates:
        try:
            result = recognizer.classify(candidate, library.all())
        except InsufficientPoints as e:
            typer.echo(f"   ⚠️  {candidate.label:20s} skipped: {e}")
            continue
        decision = decide(result, candidate.label, threshold)
        mark = "✅" if decision.accepted else "❌"
        accepted += decision.accepted
        typer.echo(
            f"   {mark} {candidate.label:20s} → {result.label:20s} score={result.score:.3f}"
        )

    total = len(candidates)
    rate = accepted / total if total else 0.0
    typer.echo(f"\n📊 Accepted {accepted}/{total} ({rate:.1%})")


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to a .json/.npz sample recording"),
    library_path: Optional[str] = typer.Option(None, "--library", help="Template file or directory"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Engine config YAML"),
    realtime: bool = typer.Option(False, help="Play at the recorded frame rate"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Replay a recorded pointer session through a gesture session."""
    from stroke_engine.config import EngineConfig
    from stroke_engine.recorder import SamplePlayer
    from stroke_engine.session import GestureSession

    _setup_logging(log_level)

    path = Path(recording)
    if not path.exists():
        typer.echo(f"❌ Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    config = EngineConfig.from_yaml(config_path) if config_path else EngineConfig()
    library = _load_library(library_path or config.templates)
    session = GestureSession.from_config(config, library)

    player = SamplePlayer.load(path)
    typer.echo(f"▶️  Replaying {path.name} ({player.sample_count} ticks, {player.duration:.1f}s)")

    def on_decision(outcome):
        mark = "✅" if outcome.accepted else "❌"
        typer.echo(
            f"   {mark} tick {outcome.tick}: {outcome.result.label} "
            f"(score={outcome.result.score:.2f}, expected={outcome.expected_label})"
        )

    session.on_decision(on_decision)
    session.start()

    samples = player.play_realtime() if realtime else player.play()
    for sample in samples:
        session.tick(sample)
    session.finish()

    stats = session.stats
    typer.echo(
        f"\n✅ Replay complete. {stats.gestures} gestures, "
        f"{stats.accepted} accepted, {stats.rejected} rejected, {stats.discarded} discarded."
    )


@app.command()
def benchmark(
    iterations: int = typer.Option(200, min=1, help="Number of classifications"),
    points: int = typer.Option(32, help="Resample point count"),
    noise: float = typer.Option(0.02, help="Gaussian jitter added to candidates"),
    log_level: str = typer.Option("warning", help="Log level"),
):
    """Benchmark classification against the built-in library."""
    import numpy as np

    from stroke_engine.points import Gesture, Point
    from stroke_engine.recognizer import PointCloudRecognizer

    _setup_logging(log_level)
    library = TemplateLibrary.with_defaults()
    recognizer = PointCloudRecognizer(n_points=points)
    rng = np.random.default_rng(42)

    typer.echo(
        f"⚡ Running benchmark: {iterations} iterations, {len(library)} templates, N={points}"
    )

    templates_list = library.all()
    times = []
    correct = 0
    for i in range(iterations):
        source = templates_list[i % len(templates_list)]
        jitter = rng.normal(0.0, noise, size=(len(source), 2))
        candidate = Gesture(tuple(
            Point(p.x + dx, p.y + dy, p.stroke_id)
            for p, (dx, dy) in zip(source.points, jitter)
        ))

        t0 = time.perf_counter()
        result = recognizer.classify(candidate, templates_list)
        times.append(time.perf_counter() - t0)
        correct += result.label == source.label

    avg_ms = sum(times) / len(times) * 1000
    p95_ms = sorted(times)[int(len(times) * 0.95)] * 1000

    typer.echo("\n📊 Results:")
    typer.echo(f"   Average latency: {avg_ms:.2f} ms")
    typer.echo(f"   P95 latency:     {p95_ms:.2f} ms")
    typer.echo(f"   Accuracy:        {correct / iterations:.1%}")


def main():
    app()


if __name__ == "__main__":
    main()
