"""Tests for the external process runner.

Uses the running Python interpreter as a stand-in tool, so no ffmpeg
is needed.
"""

import sys

import pytest


class TestRunTool:
    def test_zero_exit_succeeds(self):
        from livecompose.process import run_tool

        run_tool(sys.executable, ["-c", "pass"])  # should not raise

    def test_nonzero_exit_raises_with_code(self):
        from livecompose.errors import TransformError
        from livecompose.process import run_tool

        with pytest.raises(TransformError) as exc_info:
            run_tool(sys.executable, ["-c", "import sys; sys.exit(3)"])
        assert exc_info.value.exit_code == 3
        assert exc_info.value.tool == sys.executable

    def test_missing_tool_raises(self, tmp_path):
        from livecompose.errors import TransformError
        from livecompose.process import run_tool

        with pytest.raises(TransformError, match="could not start") as exc_info:
            run_tool(str(tmp_path / "no-such-tool"), [])
        assert exc_info.value.exit_code is None

    def test_args_are_stringified(self, tmp_path):
        from livecompose.process import run_tool

        out = tmp_path / "out.txt"
        run_tool(sys.executable, [
            "-c", "import sys; open(sys.argv[1], 'w').write(sys.argv[2])",
            out, 42,
        ])
        assert out.read_text() == "42"


class TestRunCapture:
    def test_returns_stdout(self):
        from livecompose.process import run_capture

        out = run_capture(sys.executable, ["-c", "print('12.5')"])
        assert out.strip() == "12.5"

    def test_nonzero_exit_raises(self):
        from livecompose.errors import TransformError
        from livecompose.process import run_capture

        with pytest.raises(TransformError) as exc_info:
            run_capture(sys.executable, ["-c", "import sys; print('x'); sys.exit(1)"])
        assert exc_info.value.exit_code == 1
