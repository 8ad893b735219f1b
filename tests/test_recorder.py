"""Tests for pointer-sample recording and replay."""

from stroke_engine.capture import PointerSample
from stroke_engine.recorder import SamplePlayer, SampleRecorder


def make_samples():
    return [
        PointerSample(down=False, x=0.0, y=0.0),
        PointerSample(down=True, x=10.0, y=20.0),
        PointerSample(down=True, x=12.5, y=21.0, paused=True),
        PointerSample(down=True, x=15.0, y=22.0),
        PointerSample(down=False, x=15.0, y=22.0),
    ]


def record(samples, fps=60.0):
    rec = SampleRecorder(fps=fps)
    rec.start()
    for s in samples:
        rec.add(s)
    rec.stop()
    return rec


class TestRecorder:
    def test_record_and_count(self):
        rec = SampleRecorder()
        rec.start()
        assert rec.is_recording
        for s in make_samples():
            rec.add(s)
        assert rec.stop() == 5
        assert not rec.is_recording

    def test_not_recording_ignores_samples(self):
        rec = SampleRecorder()
        rec.add(PointerSample(down=True))
        assert rec.sample_count == 0

    def test_start_clears_previous(self):
        rec = record(make_samples())
        rec.start()
        assert rec.sample_count == 0

    def test_save_and_load_json(self, tmp_path):
        samples = make_samples()
        path = tmp_path / "session.json"
        record(samples, fps=30.0).save(path)

        player = SamplePlayer.load(path)
        assert player.sample_count == 5
        assert player.fps == 30.0
        assert list(player.play()) == samples

    def test_save_and_load_npz(self, tmp_path):
        samples = make_samples()
        path = record(samples).save_compact(tmp_path / "session.npz")
        assert path.suffix == ".npz"

        player = SamplePlayer.load(path)
        assert list(player.play()) == samples
        assert player.fps == 60.0

    def test_compact_forces_suffix(self, tmp_path):
        path = record(make_samples()).save_compact(tmp_path / "session.bin")
        assert path == tmp_path / "session.npz"
        assert path.exists()

    def test_empty_recording(self, tmp_path):
        path = record([]).save_compact(tmp_path / "empty.npz")
        assert SamplePlayer.load(path).sample_count == 0


class TestPlayer:
    def test_duration(self):
        player = SamplePlayer(make_samples() * 12, fps=60.0)
        assert player.duration == 1.0

    def test_get_sample(self):
        samples = make_samples()
        player = SamplePlayer(samples)
        assert player.get_sample(1) == samples[1]
        assert player.get_sample(99) is None
        assert player.get_sample(-1) is None

    def test_realtime_yields_everything(self):
        samples = make_samples()
        player = SamplePlayer(samples, fps=1000.0)
        assert list(player.play_realtime(speed=10.0)) == samples
