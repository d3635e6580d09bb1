"""Overlay compositing — static branding and time-windowed animated overlays.

Two passes are applied to each half of the principal video:
  - Static: footer graphic anchored to the bottom edge (optional text
    banner above it), logo in the top-right corner. Present for the
    whole clip.
  - Animated: a footer clip that slides up from below the frame at a
    given entry time, rests for the window, and slides back out.

Filter graphs are assembled from filtergraph expressions, so the same
inputs always produce the same argument vector.
"""

from pathlib import Path

from .filtergraph import OverlayWindow, anchor_exprs
from .ledger import TempLedger
from .process import FFMPEG, run_tool
from .profiles import TARGET_PROFILE, codec_args


# ── Constants ────────────────────────────────────────────────────

LOGO_WIDTH = 80                  # logo is scaled to this width, aspect kept
LOGO_MARGIN = 10                 # px from the top and right edges
LOGO_ANCHOR = "top-right"
FOOTER_HEIGHT = 60               # footer graphics are scaled to this height
FOOTER_ANCHOR = "bottom-left"
ANIMATED_WINDOW_SECONDS = 60.0   # exit = entry + this
ANIMATED_SLIDE_SECONDS = 1.0

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".webp", ".bmp", ".gif"}


# ── Filter graph builders ────────────────────────────────────────


def _overlay(base: str, top: str, position: str, margin: float, out: str) -> str:
    x, y = anchor_exprs(position, margin)
    return f"{base}{top}overlay=x={x.render()}:y={y.render()}{out}"


def static_filter_graph(with_footer: bool = True, with_banner: bool = False) -> str:
    """Filter graph for footer, text banner and logo over input 0.

    Inputs follow the order footer, banner, logo; absent layers are skipped.
    The banner sits on the bottom edge, or directly above the footer when
    both are present. Output label is [final].
    """
    parts = []
    base = "[0:v]"
    index = 1
    if with_footer:
        parts.append(f"[{index}:v]scale=-1:{FOOTER_HEIGHT}[footer]")
        parts.append(_overlay(base, "[footer]", FOOTER_ANCHOR, 0, "[base]"))
        base = "[base]"
        index += 1
    if with_banner:
        x, _ = anchor_exprs(FOOTER_ANCHOR)
        _, y = anchor_exprs(FOOTER_ANCHOR, FOOTER_HEIGHT if with_footer else 0)
        parts.append(f"[{index}:v]scale=-1:{FOOTER_HEIGHT}[banner]")
        parts.append(f"{base}[banner]overlay=x={x.render()}:y={y.render()}[texted]")
        base = "[texted]"
        index += 1
    parts.append(f"[{index}:v]scale={LOGO_WIDTH}:-1[logo]")
    parts.append(_overlay(base, "[logo]", LOGO_ANCHOR, LOGO_MARGIN, "[final]"))
    return ";".join(parts)


def animated_filter_graph(window: OverlayWindow) -> str:
    """Filter graph sliding input 1 over input 0 during *window*.

    Outside the window the overlay is disabled and the base passes
    through untouched. shortest=1 clamps output to the shorter input.
    """
    x, _ = anchor_exprs(FOOTER_ANCHOR)
    return (
        f"[1:v]scale=-1:{FOOTER_HEIGHT}[anim];"
        f"[0:v][anim]overlay="
        f"x={x.render()}"
        f":y='{window.y_expr().render()}'"
        f":enable='{window.enable_expr().render()}'"
        f":shortest=1[final]"
    )


def _loop_args(path: Path) -> list[str]:
    """Input options that make the overlay source unbounded in time."""
    if path.suffix.lower() in IMAGE_SUFFIXES:
        return ["-loop", "1"]
    return ["-stream_loop", "-1"]


def _output_args(profile: dict | None) -> list[str]:
    # 0:a? keeps the base audio when present; no audio is not an error.
    return ["-map", "[final]", "-map", "0:a?", *codec_args(profile or TARGET_PROFILE)]


# ── Compositing passes ───────────────────────────────────────────


def compose_static_footer_and_logo(
    video: str | Path,
    footer_image: str | Path | None,
    logo_image: str | Path,
    output: str | Path,
    ledger: TempLedger,
    profile: dict | None = None,
    banner_image: str | Path | None = None,
) -> Path:
    """Burn the footer (bottom), optional text banner and logo (top-right) into *video*.

    Args:
        video: Base clip.
        footer_image: Footer graphic, or None to skip it.
        logo_image: Logo image, scaled to LOGO_WIDTH.
        output: Output path (registered in *ledger*).
        ledger: Job ledger.
        profile: Encoding profile; must match the other concat segments.
        banner_image: Rendered footer text, stacked above the footer.

    Returns:
        The output path.
    """
    output = ledger.register(output, "overlay-static")
    inputs = ["-i", str(video)]
    if footer_image is not None:
        inputs += ["-i", str(footer_image)]
    if banner_image is not None:
        inputs += ["-i", str(banner_image)]
    inputs += ["-i", str(logo_image)]
    graph = static_filter_graph(
        with_footer=footer_image is not None,
        with_banner=banner_image is not None,
    )

    run_tool(FFMPEG, [
        "-y",
        *inputs,
        "-filter_complex", graph,
        *_output_args(profile),
        str(output),
    ])
    return output


def compose_animated_overlay(
    video: str | Path,
    overlay_clip: str | Path,
    entry_time: float,
    output: str | Path,
    ledger: TempLedger,
    profile: dict | None = None,
    duration: float = ANIMATED_WINDOW_SECONDS,
) -> Path:
    """Slide *overlay_clip* over *video* during [entry_time, entry_time + duration].

    The overlay input is looped so it never runs out before the window
    closes; the output therefore ends with the base video.

    Raises:
        ValueError: entry_time is negative.
    """
    if entry_time < 0:
        raise ValueError(f"Overlay entry time must be >= 0, got {entry_time}")
    window = OverlayWindow.starting_at(entry_time, duration, ANIMATED_SLIDE_SECONDS)
    overlay_clip = Path(overlay_clip)
    output = ledger.register(output, "overlay-animated")

    run_tool(FFMPEG, [
        "-y",
        "-i", str(video),
        *_loop_args(overlay_clip), "-i", str(overlay_clip),
        "-filter_complex", animated_filter_graph(window),
        *_output_args(profile),
        str(output),
    ])
    return output
