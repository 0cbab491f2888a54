# File: tests/conftest.py

import os
import subprocess
import sys
import threading
from pathlib import Path

import pytest

# 1. Add project root to path
sys.path.append(os.getcwd())

from splicer.core.config.settings import Settings, settings
from splicer.features.media_engine.domain.interfaces import IMediaEngine
from splicer.features.media_engine.domain.models import EngineFailed, EngineInvocation
from splicer.features.observability.data.logging_observer import RecordingObserver

class FakeEngine(IMediaEngine):
    """
    Stands in for ffmpeg.

    extract/transform write a small text payload describing the cut;
    concatenate reads the manifest and joins the part files byte-for-byte
    in manifest order, so tests can check ordering from the final artifact.
    """

    def __init__(self, fail_extract_at=None, fail_concat=False, empty_output_at=None, on_extract=None):
        self.fail_extract_at = fail_extract_at
        self.fail_concat = fail_concat
        self.empty_output_at = empty_output_at
        self.on_extract = on_extract
        self.calls = []
        self._extract_count = 0
        self._lock = threading.Lock()

    def extract(self, source, output, start_seconds, duration_seconds, cancel=None):
        return self._cut("extract", source, output, start_seconds, duration_seconds)

    def transform(self, source, output, video_filter=None, audio_filter=None, encode=None, cancel=None):
        return self._cut("transform", source, output, video_filter, audio_filter)

    def concatenate(self, manifest, output, cancel=None):
        with self._lock:
            self.calls.append(("concatenate", Path(manifest), Path(output)))
        if self.fail_concat:
            raise EngineFailed(1, "concat: Invalid data found when processing input")

        parts = [Path(p) for p in parse_manifest(Path(manifest).read_text())]
        Path(output).write_bytes(b"".join(p.read_bytes() for p in parts))
        return _completed(["fake", "concat", str(manifest)])

    def _cut(self, kind, source, output, a, b):
        with self._lock:
            index = self._extract_count
            self._extract_count += 1
            self.calls.append((kind, Path(source), Path(output), a, b))

        if self.on_extract is not None:
            self.on_extract(index)
        if self.fail_extract_at is not None and index == self.fail_extract_at:
            raise EngineFailed(1, f"Error while cutting segment {index}")

        if self.empty_output_at is not None and index == self.empty_output_at:
            Path(output).write_bytes(b"")
        else:
            Path(output).write_bytes(f"[{a}+{b}]".encode())
        return _completed(["fake", kind, str(output)])

    @property
    def extract_calls(self):
        return [c for c in self.calls if c[0] in ("extract", "transform")]


def _completed(argv):
    invocation = EngineInvocation(argv=argv)
    invocation.mark_invoked()
    invocation.mark_completed()
    return invocation


def parse_manifest(text):
    """Reads back `file '<path>'` lines, undoing the '\\'' escaping."""
    paths = []
    for line in text.splitlines():
        assert line.startswith("file '") and line.endswith("'"), line
        paths.append(line[len("file '"):-1].replace("'\\''", "'"))
    return paths


def make_test_video(path: Path, duration: int = 5, with_audio: bool = True) -> Path:
    """
    Generates a synthetic video with ffmpeg.
    Keyframe every 10 frames so stream-copy cuts land close to the requested time.
    """
    cmd = ["ffmpeg", "-y", "-f", "lavfi", "-i", f"testsrc=duration={duration}:size=320x240:rate=30"]
    if with_audio:
        cmd += ["-f", "lavfi", "-i", f"sine=frequency=1000:duration={duration}"]
    cmd += ["-c:v", "libx264", "-g", "10", "-pix_fmt", "yuv420p"]
    if with_audio:
        cmd += ["-c:a", "aac"]
    cmd.append(str(path))
    subprocess.run(cmd, check=True, capture_output=True)
    return path


def probe_duration(path: Path) -> float:
    probe_cmd = [
        "ffprobe", "-v", "error", "-show_entries", "format=duration",
        "-of", "default=noprint_wrappers=1:nokey=1", str(path)
    ]
    result = subprocess.run(probe_cmd, capture_output=True, text=True)
    return float(result.stdout.strip())


@pytest.fixture
def fake_engine():
    return FakeEngine()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def scratch_root(tmp_path):
    root = tmp_path / "video-jobs"
    root.mkdir()
    return root


@pytest.fixture
def test_settings(tmp_path, scratch_root):
    """A Settings instance pointed at tmp dirs, streaming delivery, stream-copy extraction."""
    config = Settings()
    config.SCRATCH_ROOT = scratch_root
    config.UPLOAD_DIR = tmp_path / "uploads"
    config.DELIVERY_MODE = "stream"
    config.EXTRACTION_MODE = "copy"
    config.OUTPUT_CONTAINER = "mp4"
    config.STREAM_CHUNK_BYTES = 4
    return config


@pytest.fixture
def isolated_settings(monkeypatch, test_settings):
    """Points the global settings singleton at the same tmp dirs."""
    monkeypatch.setattr(settings, "SCRATCH_ROOT", test_settings.SCRATCH_ROOT)
    monkeypatch.setattr(settings, "UPLOAD_DIR", test_settings.UPLOAD_DIR)
    return settings


@pytest.fixture
def source_video(tmp_path):
    """A placeholder 'video' for pipelines running on the fake engine."""
    path = tmp_path / "source.mp4"
    path.write_bytes(b"not really a video")
    return path


@pytest.fixture
def engine_factory():
    return FakeEngine


@pytest.fixture
def manifest_reader():
    return parse_manifest


@pytest.fixture
def make_video():
    return make_test_video


@pytest.fixture
def duration_of():
    return probe_duration
