"""Segment transforms — cut, re-encode, probe, and text rasterization.

Thin typed wrappers over the process runner. Every output path is
registered in the job's ledger before the tool runs.
"""

import math
from pathlib import Path

from .common import escape_filter_path, find_font_file, fmt_num
from .errors import ProbeError, TransformError
from .ledger import TempLedger
from .process import FFMPEG, FFPROBE, run_capture, run_tool
from .profiles import TARGET_PROFILE, encode_args, silent_audio_source

TEXT_IMAGE_SIZE = (1280, 60)
TEXT_FONT_SIZE = 36


def probe_duration(path: str | Path) -> float:
    """Read a media file's duration in seconds using ffprobe.

    Raises:
        ProbeError: ffprobe failed or printed something that isn't a
            finite, non-negative number.
    """
    try:
        out = run_capture(FFPROBE, [
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            str(path),
        ])
    except TransformError as exc:
        raise ProbeError(f"Could not probe duration of {path}: {exc}") from exc

    text = out.strip()
    try:
        duration = float(text)
    except ValueError:
        raise ProbeError(
            f"Could not parse duration of {path}: {text!r}"
        ) from None
    if not math.isfinite(duration) or duration < 0:
        raise ProbeError(f"Invalid duration for {path}: {text!r}")
    return duration


def probe_has_audio(path: str | Path) -> bool:
    """True if *path* carries at least one audio stream.

    Raises:
        ProbeError: ffprobe failed.
    """
    try:
        out = run_capture(FFPROBE, [
            "-v", "error",
            "-select_streams", "a",
            "-show_entries", "stream=codec_type",
            "-of", "csv=p=0",
            str(path),
        ])
    except TransformError as exc:
        raise ProbeError(f"Could not probe streams of {path}: {exc}") from exc
    return out.strip() != ""


def cut_at(
    source: str | Path,
    split_point: float,
    first: str | Path,
    second: str | Path,
    ledger: TempLedger,
) -> tuple[Path, Path]:
    """Split *source* at *split_point* into [0, M) and [M, end).

    Stream-copies (no re-encode), so the cut lands on the nearest
    keyframe. The following re-encode step normalizes both halves.

    Raises:
        ValueError: split_point is not positive.
        TransformError: ffmpeg failed.
    """
    if split_point <= 0:
        raise ValueError(f"Split point must be > 0, got {split_point}")

    first = ledger.register(first, "cut")
    second = ledger.register(second, "cut")
    m = fmt_num(split_point)

    print(f"  CUT    {source} @ {m}s", flush=True)
    run_tool(FFMPEG, ["-y", "-i", str(source), "-t", m, "-c", "copy", str(first)])
    run_tool(FFMPEG, ["-y", "-ss", m, "-i", str(source), "-c", "copy", str(second)])
    return first, second


def reencode(
    source: str | Path,
    output: str | Path,
    ledger: TempLedger,
    profile: dict | None = None,
) -> Path:
    """Normalize a segment so it can be concatenated losslessly.

    Output always has one video stream (size, SAR, frame rate, pixel format
    from *profile*) and one audio stream (sample rate, channels). Sources
    without audio get a silent track.

    Raises:
        ProbeError: Stream layout of *source* could not be read.
        TransformError: ffmpeg failed.
    """
    profile = profile or TARGET_PROFILE
    output = ledger.register(output, "reencode")

    inputs = ["-i", str(source)]
    if probe_has_audio(source):
        maps = ["-map", "0:v:0", "-map", "0:a:0"]
    else:
        print(f"  SILENT {source} has no audio, adding a silent track", flush=True)
        inputs += ["-f", "lavfi", "-i", silent_audio_source(profile)]
        maps = ["-map", "0:v:0", "-map", "1:a:0", "-shortest"]

    run_tool(FFMPEG, ["-y", *inputs, *maps, *encode_args(profile), str(output)])
    return output


def render_text_image(
    text: str,
    output: str | Path,
    ledger: TempLedger,
    size: tuple[int, int] = TEXT_IMAGE_SIZE,
    font_size: int = TEXT_FONT_SIZE,
) -> Path:
    """Rasterize *text* onto a transparent PNG of fixed size.

    The text goes through a side-car .txt (drawtext textfile=) so that no
    quoting of user text inside the filter graph is needed. Both the
    side-car and the image are registered.
    """
    output = Path(output)
    sidecar = ledger.register(output.with_suffix(".txt"), "text")
    output = ledger.register(output, "text")
    sidecar.write_text(text, encoding="utf-8")

    w, h = size
    drawtext = [
        f"textfile='{escape_filter_path(sidecar)}'",
        "fontcolor=white",
        f"fontsize={font_size}",
        "x=(w-text_w)/2",
        "y=(h-text_h)/2",
    ]
    font = find_font_file()
    if font is not None:
        drawtext.insert(0, f"fontfile='{escape_filter_path(font)}'")

    run_tool(FFMPEG, [
        "-y",
        "-f", "lavfi", "-i", f"color=c=black@0.0:s={w}x{h}:d=1,format=rgba",
        "-vf", "drawtext=" + ":".join(drawtext),
        "-frames:v", "1",
        "-update", "1",
        str(output),
    ])
    return output
