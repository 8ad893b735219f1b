"""Template library: the immutable set of labeled reference gestures.

Templates are serialized as ordered (stroke_id, x, y) tuples per label:

    templates:
      - label: plus
        points:
          - [0, 0.5, 0.0]
          - [0, 0.5, 1.0]
          - [1, 0.0, 0.5]
          - [1, 1.0, 0.5]

JSON and YAML documents share that layout. Single-gesture $P XML files
(<Gesture Name="..."><Stroke><Point X=".." Y=".."/></Stroke></Gesture>) are
also accepted, one stroke id per <Stroke> element.
"""

from __future__ import annotations

import json
import logging
import math
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import numpy as np
import yaml

from stroke_engine.errors import TemplateLoadError
from stroke_engine.points import Point, Template

logger = logging.getLogger("stroke_engine.templates")


def _template_from_record(entry: Any, source: Optional[str | Path], index: int) -> Template:
    """Validate one serialized record and build a Template from it."""
    where = f"template #{index}"
    if not isinstance(entry, dict):
        raise TemplateLoadError(f"{where} is not a mapping", source)

    label = entry.get("label")
    if not isinstance(label, str) or not label:
        raise TemplateLoadError(f"{where} has no label", source)

    raw_points = entry.get("points")
    if not isinstance(raw_points, (list, tuple)) or not raw_points:
        raise TemplateLoadError(f"{where} ({label}) has no points", source)

    points = []
    for i, raw in enumerate(raw_points):
        if not isinstance(raw, (list, tuple)) or len(raw) != 3:
            raise TemplateLoadError(
                f"{where} ({label}) point {i} is not a (stroke_id, x, y) tuple", source
            )
        sid, x, y = raw
        try:
            if isinstance(sid, bool) or float(sid) != int(sid):
                raise ValueError(sid)
            point = Point(float(x), float(y), int(sid))
        except (TypeError, ValueError):
            raise TemplateLoadError(
                f"{where} ({label}) point {i} has non-numeric values: {raw!r}", source
            ) from None
        if not (math.isfinite(point.x) and math.isfinite(point.y)):
            raise TemplateLoadError(
                f"{where} ({label}) point {i} is not finite: {raw!r}", source
            )
        points.append(point)

    return Template(tuple(points), label=label)


def _read_pdollar_xml(path: Path) -> Template:
    """Read a single-gesture $P XML file."""
    try:
        root = ET.parse(path).getroot()
    except OSError as e:
        raise TemplateLoadError(f"cannot read file: {e}", path) from e
    except ET.ParseError as e:
        raise TemplateLoadError(f"malformed XML: {e}", path) from e

    if root.tag != "Gesture":
        raise TemplateLoadError(f"expected <Gesture> root, found <{root.tag}>", path)
    label = (root.get("Name") or "").strip()
    if not label:
        raise TemplateLoadError("<Gesture> has no Name attribute", path)

    points = []
    for stroke_id, stroke in enumerate(root.iter("Stroke")):
        for point in stroke.iter("Point"):
            try:
                points.append([stroke_id, float(point.get("X")), float(point.get("Y"))])
            except (TypeError, ValueError):
                raise TemplateLoadError(
                    f"point in stroke {stroke_id} has bad coordinates", path
                ) from None

    return _template_from_record({"label": label, "points": points}, path, 0)


class TemplateLibrary:
    """Read-only collection of templates, kept in load order.

    Load order matters: when two templates match a candidate equally well,
    the earlier one wins.
    """

    SUPPORTED_SUFFIXES = (".json", ".yml", ".yaml", ".xml")

    def __init__(self, templates: Iterable[Template] = ()):
        self._templates: tuple[Template, ...] = tuple(templates)
        for t in self._templates:
            if not isinstance(t, Template):
                raise TypeError(f"expected Template, got {type(t).__name__}")

    def all(self) -> tuple[Template, ...]:
        return self._templates

    @property
    def labels(self) -> list[str]:
        """Distinct labels in load order."""
        seen: list[str] = []
        for t in self._templates:
            if t.label not in seen:
                seen.append(t.label)
        return seen

    def by_label(self, label: str) -> list[Template]:
        return [t for t in self._templates if t.label == label]

    def __len__(self) -> int:
        return len(self._templates)

    def __iter__(self) -> Iterator[Template]:
        return iter(self._templates)

    def __contains__(self, label: object) -> bool:
        return any(t.label == label for t in self._templates)

    def to_records(self) -> list[dict]:
        return [
            {"label": t.label, "points": [list(p) for p in t.to_tuples()]}
            for t in self._templates
        ]

    @classmethod
    def from_records(
        cls, records: Iterable[Any], source: Optional[str | Path] = None
    ) -> TemplateLibrary:
        """Build a library from serialized records.

        Raises:
            TemplateLoadError: any record is malformed.
        """
        return cls(
            _template_from_record(entry, source, i) for i, entry in enumerate(records)
        )

    @classmethod
    def load(cls, path: str | Path) -> TemplateLibrary:
        """Load templates from a JSON, YAML or $P XML file."""
        path = Path(path)
        suffix = path.suffix.lower()
        if suffix not in cls.SUPPORTED_SUFFIXES:
            raise TemplateLoadError(f"unsupported template format '{suffix}'", path)

        if suffix == ".xml":
            library = cls([_read_pdollar_xml(path)])
        else:
            try:
                with open(path, encoding="utf-8") as f:
                    data = json.load(f) if suffix == ".json" else yaml.safe_load(f)
            except OSError as e:
                raise TemplateLoadError(f"cannot read file: {e}", path) from e
            except (json.JSONDecodeError, yaml.YAMLError, UnicodeDecodeError) as e:
                raise TemplateLoadError(f"cannot parse file: {e}", path) from e

            if not isinstance(data, dict) or not isinstance(data.get("templates"), list):
                raise TemplateLoadError("document has no 'templates' list", path)
            library = cls.from_records(data["templates"], source=path)

        logger.info(
            "Loaded %d templates (%d labels) from %s",
            len(library), len(library.labels), path,
        )
        return library

    @classmethod
    def load_dir(cls, directory: str | Path) -> TemplateLibrary:
        """Load every supported template file in a directory, sorted by name."""
        directory = Path(directory)
        if not directory.is_dir():
            raise TemplateLoadError("template directory does not exist", directory)

        templates: list[Template] = []
        for path in sorted(directory.iterdir()):
            if path.is_file() and path.suffix.lower() in cls.SUPPORTED_SUFFIXES:
                templates.extend(cls.load(path).all())
        return cls(templates)

    @classmethod
    def from_path(cls, path: str | Path) -> TemplateLibrary:
        """Load a file or a directory of files."""
        path = Path(path)
        if path.is_dir():
            return cls.load_dir(path)
        return cls.load(path)

    def save(self, path: str | Path):
        """Save all templates to a JSON or YAML file (chosen by suffix)."""
        path = Path(path)
        suffix = path.suffix.lower()
        data = {"templates": self.to_records()}

        path.parent.mkdir(parents=True, exist_ok=True)
        if suffix == ".json":
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        elif suffix in (".yml", ".yaml"):
            with open(path, "w", encoding="utf-8") as f:
                yaml.safe_dump(data, f, default_flow_style=None, sort_keys=False)
        else:
            raise ValueError(f"cannot save templates as '{suffix}'")

    @classmethod
    def with_defaults(cls) -> TemplateLibrary:
        """Create a library with built-in single and multi-stroke shapes."""
        angles = np.linspace(0, 2 * math.pi, 33)
        circle = [(0, math.cos(a), math.sin(a)) for a in angles]

        shapes: dict[str, list[tuple[int, float, float]]] = {
            "circle": circle,
            "square": [(0, 0, 0), (0, 1, 0), (0, 1, 1), (0, 0, 1), (0, 0, 0)],
            "triangle": [(0, 0, 0), (0, 1, 0), (0, 0.5, 0.866), (0, 0, 0)],
            "line": [(0, 0, 0), (0, 1, 0)],
            "check": [(0, 0, 0.5), (0, 0.35, 0), (0, 1, 1)],
            "zigzag": [(0, 0, 0), (0, 0.25, 1), (0, 0.5, 0), (0, 0.75, 1), (0, 1, 0)],
            "plus": [(0, 0.5, 0), (0, 0.5, 1), (1, 0, 0.5), (1, 1, 0.5)],
            "x": [(0, 0, 0), (0, 1, 1), (1, 0, 1), (1, 1, 0)],
        }
        return cls(
            Template.from_tuples(records, label=label) for label, records in shapes.items()
        )
