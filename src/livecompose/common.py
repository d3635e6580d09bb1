"""livecompose.common — shared helpers for the pipeline stages.

Contains: path variable resolution, font lookup for text rendering,
number formatting for ffmpeg arguments, and job-scoped temp naming.
"""

import re
from pathlib import Path


# ── Font paths ─────────────────────────────────────────────────────
# Used by ffmpeg drawtext. Inter preferred, DejaVu Sans as fallback.

FONT_PATHS = [
    Path.home() / ".local/share/fonts/Inter.ttc",
    Path("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"),
    Path("/usr/share/fonts/TTF/DejaVuSans.ttf"),
    Path("/Library/Fonts/Arial.ttf"),
]


def find_font_file() -> Path | None:
    """Return the first font file that exists, or None.

    With None, drawtext falls back to fontconfig's default face.
    """
    for font_path in FONT_PATHS:
        if font_path.exists():
            return font_path
    return None


# ── Path utilities ─────────────────────────────────────────────────

def resolve_path_vars(text: str, paths: dict[str, str]) -> str:
    """Replace ${name} variables in a string using the paths dict."""
    def _replace(match):
        key = match.group(1)
        if key not in paths:
            raise ValueError(f"Unknown path variable: ${{{key}}}")
        return paths[key]
    return re.sub(r"\$\{(\w+)\}", _replace, text)


def check_job_id(job_id: str) -> str:
    """Return *job_id* if it is safe to embed in a file name.

    Raises:
        ValueError: Empty, "." or "..", or contains a path separator.
    """
    if job_id in ("", ".", "..") or "/" in job_id or "\\" in job_id:
        raise ValueError(f"Invalid job id {job_id!r}: must be a plain file name part")
    return job_id


def job_path(work_dir: str | Path, job_id: str, name: str) -> Path:
    """Temp file path namespaced by job id, so concurrent jobs can't collide."""
    return Path(work_dir) / f"{check_job_id(job_id)}_{name}"


# ── ffmpeg argument formatting ─────────────────────────────────────

def fmt_num(value: float) -> str:
    """Format a number for an ffmpeg expression: fixed precision, no noise.

    360 -> "360", 0.5 -> "0.5", 1/3 -> "0.333". Same input always gives the
    same string.
    """
    text = f"{float(value):.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def escape_filter_path(path: str | Path) -> str:
    """Make a file path safe inside a single-quoted filter option value.

    Used as drawtext textfile='...'. Inside quotes only the quote itself
    needs escaping (close, escaped quote, reopen).
    """
    s = str(path).replace("\\", "/")
    return s.replace("'", r"'\''")
