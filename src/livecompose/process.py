"""External process runner — ffmpeg and ffprobe invocations.

The tools' own diagnostic output is inherited, so it streams live to the
terminal. A run succeeds iff the child exits 0; there are no retries.
"""

import shutil
import subprocess

import imageio_ffmpeg

from .errors import TransformError

FFMPEG = imageio_ffmpeg.get_ffmpeg_exe()

# imageio_ffmpeg does NOT bundle ffprobe, so it has to come from PATH.
FFPROBE = shutil.which("ffprobe") or "ffprobe"


def _command(tool: str, args: list[str]) -> list[str]:
    return [tool, *(str(a) for a in args)]


def run_tool(tool: str, args: list[str]) -> None:
    """Run a tool to completion, streaming its output.

    Raises:
        TransformError: Non-zero exit, or the tool could not be started.
    """
    cmd = _command(tool, args)
    print(f"  RUN    {' '.join(cmd)}", flush=True)
    try:
        result = subprocess.run(cmd)
    except OSError as exc:
        raise TransformError(tool, None, f"could not start {tool}: {exc}") from exc
    if result.returncode != 0:
        raise TransformError(tool, result.returncode)


def run_capture(tool: str, args: list[str]) -> str:
    """Run a tool and return its stdout as text (stderr still streams).

    Raises:
        TransformError: Non-zero exit, or the tool could not be started.
    """
    cmd = _command(tool, args)
    try:
        result = subprocess.run(cmd, stdout=subprocess.PIPE, text=True)
    except OSError as exc:
        raise TransformError(tool, None, f"could not start {tool}: {exc}") from exc
    if result.returncode != 0:
        raise TransformError(tool, result.returncode)
    return result.stdout
