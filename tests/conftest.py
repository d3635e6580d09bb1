"""Shared test fixtures for livecompose tests."""

import json
import shutil
import subprocess
from pathlib import Path

import pytest
import imageio_ffmpeg

_FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

requires_ffprobe = pytest.mark.skipif(
    shutil.which("ffprobe") is None,
    reason="ffprobe not on PATH (imageio_ffmpeg only bundles ffmpeg)",
)


def make_video(out, color="blue", duration=5, size="320x240", audio=True,
               rate=10, pix_fmt="yuv420p", sample_rate=44100, layout="mono"):
    """Render a small solid-color test clip with the bundled ffmpeg."""
    cmd = [_FFMPEG, "-y", "-f", "lavfi", "-i", f"color=c={color}:s={size}:d={duration}:r={rate}"]
    if audio:
        cmd += ["-f", "lavfi", "-i", f"anullsrc=r={sample_rate}:cl={layout}", "-shortest"]
    cmd += ["-c:v", "libx264", "-crf", "28", "-pix_fmt", pix_fmt, "-g", str(rate)]
    if audio:
        cmd += ["-c:a", "aac", "-b:a", "32k"]
    cmd.append(str(out))
    subprocess.run(cmd, check=True, capture_output=True)
    return Path(out)


@pytest.fixture
def source_video(tmp_path):
    """A 5-second test video (320x240, 10fps, keyframe every second) with audio."""
    return make_video(tmp_path / "source.mp4")


class FakeFetcher:
    """Records fetch calls and writes a placeholder file at the destination."""

    def __init__(self, fail_on=None):
        self.calls = []
        self.fail_on = fail_on

    def fetch(self, reference, destination):
        from livecompose.errors import FetchError

        self.calls.append((reference, Path(destination)))
        if reference == self.fail_on:
            raise FetchError(f"not found: {reference}")
        Path(destination).write_bytes(b"fake media " + reference.encode())
        return Path(destination)


@pytest.fixture
def fetcher():
    return FakeFetcher()


class RecordingNotifier:
    """Collects StatusEvents; optionally fails every send."""

    def __init__(self, fail=False):
        self.events = []
        self.fail = fail

    def send(self, event):
        from livecompose.errors import NotifyError

        self.events.append(event)
        if self.fail:
            raise NotifyError("coordinator unreachable")

    @property
    def phases(self):
        return [e.phase for e in self.events]


@pytest.fixture
def notifier():
    return RecordingNotifier()


def stream_layout(path):
    """Per-stream parameters the concat demuxer needs to agree on."""
    out = subprocess.run(
        [
            "ffprobe", "-v", "error",
            "-show_entries",
            "stream=codec_type,codec_name,width,height,pix_fmt,sample_aspect_ratio,"
            "r_frame_rate,sample_rate,channels",
            "-of", "json", str(path),
        ],
        check=True, capture_output=True, text=True,
    ).stdout
    return json.loads(out)["streams"]
