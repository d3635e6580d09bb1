"""Lossless concatenation of normalized segments.

Writes an ffmpeg concat-demuxer list (one ``file '<path>'`` line per
segment, in order) and stream-copies everything into one output. All
segments must share a container/codec profile; a mismatch shows up as a
non-zero ffmpeg exit and is raised as ConcatMismatchError.
"""

from pathlib import Path

from .errors import ConcatMismatchError, TransformError
from .ledger import TempLedger
from .process import FFMPEG, run_tool


def _quote(path: str | Path) -> str:
    # concat demuxer quoting: close quote, escaped quote, reopen.
    return "'" + str(path).replace("'", r"'\''") + "'"


def write_concat_list(segments: list[str | Path], list_path: str | Path) -> Path:
    """Write the concat list file. Order is preserved verbatim."""
    list_path = Path(list_path)
    lines = [f"file {_quote(seg)}" for seg in segments]
    list_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return list_path


def concatenate(
    segments: list[str | Path],
    output: str | Path,
    list_path: str | Path,
    ledger: TempLedger,
) -> Path:
    """Join *segments* in order into *output* with a stream copy.

    The list file is registered in the ledger; the output is not (it is
    the product of the job).

    Raises:
        ValueError: No segments.
        ConcatMismatchError: ffmpeg refused the join.
    """
    if not segments:
        raise ValueError("No segments to concatenate")

    list_path = ledger.register(list_path, "concat")
    write_concat_list(segments, list_path)
    Path(output).parent.mkdir(parents=True, exist_ok=True)

    print(f"Joining {len(segments)} segments -> {output}", flush=True)
    try:
        run_tool(FFMPEG, [
            "-y",
            "-f", "concat", "-safe", "0",
            "-i", str(list_path),
            "-c", "copy",
            str(output),
        ])
    except TransformError as exc:
        raise ConcatMismatchError(
            exc.tool, exc.exit_code,
            f"Concatenation failed ({exc}); segments may not share a codec profile",
        ) from exc
    return Path(output)
