"""Tests for overlay compositing (argument construction + one real render)."""

from unittest.mock import patch

import pytest

from conftest import make_video


def _args(run):
    return run.call_args.args[1]


def _filter(args):
    return args[args.index("-filter_complex") + 1]


class TestStaticFilterGraph:
    def test_footer_bottom_logo_top_right(self):
        from livecompose.overlays import static_filter_graph

        graph = static_filter_graph()
        assert graph == (
            "[1:v]scale=-1:60[footer];"
            "[0:v][footer]overlay=x=0:y=H-h[base];"
            "[2:v]scale=80:-1[logo];"
            "[base][logo]overlay=x=W-w-10:y=10[final]"
        )

    def test_logo_only(self):
        from livecompose.overlays import static_filter_graph

        graph = static_filter_graph(with_footer=False)
        assert graph == (
            "[1:v]scale=80:-1[logo];"
            "[0:v][logo]overlay=x=W-w-10:y=10[final]"
        )

    def test_banner_stacked_above_footer(self):
        from livecompose.overlays import static_filter_graph

        graph = static_filter_graph(with_footer=True, with_banner=True)
        assert graph == (
            "[1:v]scale=-1:60[footer];"
            "[0:v][footer]overlay=x=0:y=H-h[base];"
            "[2:v]scale=-1:60[banner];"
            "[base][banner]overlay=x=0:y=H-h-60[texted];"
            "[3:v]scale=80:-1[logo];"
            "[texted][logo]overlay=x=W-w-10:y=10[final]"
        )

    def test_banner_without_footer_on_bottom_edge(self):
        from livecompose.overlays import static_filter_graph

        graph = static_filter_graph(with_footer=False, with_banner=True)
        assert "[0:v][banner]overlay=x=0:y=H-h[texted]" in graph
        assert "[2:v]scale=80:-1[logo]" in graph


class TestComposeStatic:
    def test_inputs_and_optional_audio(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_static_footer_and_logo

        ledger = TempLedger()
        with patch("livecompose.overlays.run_tool") as run:
            out = compose_static_footer_and_logo(
                "v.mp4", "footer.png", "logo.png", tmp_path / "o.mp4", ledger,
            )
        args = _args(run)
        inputs = [args[i + 1] for i, a in enumerate(args) if a == "-i"]
        assert inputs == ["v.mp4", "footer.png", "logo.png"]
        assert args[args.index("-map") + 1] == "[final]"
        assert "0:a?" in args
        assert out in ledger

    def test_banner_input_between_footer_and_logo(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_static_footer_and_logo

        with patch("livecompose.overlays.run_tool") as run:
            compose_static_footer_and_logo(
                "v.mp4", "footer.png", "logo.png", tmp_path / "o.mp4", TempLedger(),
                banner_image="text.png",
            )
        args = _args(run)
        inputs = [args[i + 1] for i, a in enumerate(args) if a == "-i"]
        assert inputs == ["v.mp4", "footer.png", "text.png", "logo.png"]
        assert "[3:v]scale=80:-1[logo]" in _filter(args)

    def test_without_footer(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_static_footer_and_logo

        with patch("livecompose.overlays.run_tool") as run:
            compose_static_footer_and_logo(
                "v.mp4", None, "logo.png", tmp_path / "o.mp4", TempLedger(),
            )
        args = _args(run)
        inputs = [args[i + 1] for i, a in enumerate(args) if a == "-i"]
        assert inputs == ["v.mp4", "logo.png"]
        assert "[footer]" not in _filter(args)

    def test_identical_inputs_identical_args(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_static_footer_and_logo

        calls = []
        for _ in range(2):
            with patch("livecompose.overlays.run_tool") as run:
                compose_static_footer_and_logo(
                    "v.mp4", "f.png", "l.png", tmp_path / "o.mp4", TempLedger(),
                )
            calls.append(_args(run))
        assert calls[0] == calls[1]

    def test_video_without_audio_composes(self, tmp_path):
        from PIL import Image

        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_static_footer_and_logo

        video = make_video(tmp_path / "silent.mp4", duration=2, audio=False)
        Image.new("RGBA", (320, 20), (255, 0, 0, 255)).save(tmp_path / "footer.png")
        Image.new("RGBA", (40, 40), (0, 255, 0, 255)).save(tmp_path / "logo.png")

        out = compose_static_footer_and_logo(
            video, tmp_path / "footer.png", tmp_path / "logo.png",
            tmp_path / "out.mp4", TempLedger(),
        )
        assert out.exists()
        assert out.stat().st_size > 100


class TestComposeAnimated:
    def test_window_expressions_in_graph(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        with patch("livecompose.overlays.run_tool") as run:
            compose_animated_overlay("v.mp4", "footer.mp4", 360, tmp_path / "o.mp4", TempLedger())
        graph = _filter(_args(run))
        assert "enable='between(t,360,420)'" in graph
        assert "y='if(lt(t,361),H-h*(t-360),if(lt(t,419),H-h,H-h+h*(t-419)))'" in graph
        assert "shortest=1" in graph

    def test_clip_overlay_is_looped(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        with patch("livecompose.overlays.run_tool") as run:
            compose_animated_overlay("v.mp4", "footer.mp4", 10, tmp_path / "o.mp4", TempLedger())
        args = _args(run)
        i = args.index("footer.mp4")
        assert args[i - 3:i] == ["-stream_loop", "-1", "-i"]

    def test_image_overlay_is_looped(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        with patch("livecompose.overlays.run_tool") as run:
            compose_animated_overlay("v.mp4", "banner.PNG", 10, tmp_path / "o.mp4", TempLedger())
        args = _args(run)
        i = args.index("banner.PNG")
        assert args[i - 3:i] == ["-loop", "1", "-i"]

    def test_negative_entry_raises(self, tmp_path):
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        with pytest.raises(ValueError, match="entry"):
            compose_animated_overlay("v.mp4", "f.mp4", -1, tmp_path / "o.mp4", TempLedger())

    def test_output_registered_even_on_failure(self, tmp_path):
        from livecompose.errors import TransformError
        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        ledger = TempLedger()
        with patch("livecompose.overlays.run_tool", side_effect=TransformError("ffmpeg", 1)):
            with pytest.raises(TransformError):
                compose_animated_overlay("v.mp4", "f.mp4", 0, tmp_path / "o.mp4", ledger)
        assert tmp_path / "o.mp4" in ledger

    def test_real_render_keeps_base_duration(self, tmp_path):
        from moviepy import VideoFileClip

        from livecompose.ledger import TempLedger
        from livecompose.overlays import compose_animated_overlay

        base = make_video(tmp_path / "base.mp4", duration=5)
        overlay = make_video(tmp_path / "ov.mp4", color="red", duration=1, size="320x40", audio=False)

        out = compose_animated_overlay(
            base, overlay, 1, tmp_path / "out.mp4", TempLedger(), duration=3,
        )
        with VideoFileClip(str(out)) as clip:
            assert clip.duration == pytest.approx(5.0, abs=0.5)
