"""Exception types raised by the composition and broadcast pipelines.

Everything derives from LivecomposeError so CLIs can catch one type and
exit non-zero. NotifyError is the odd one out: the supervisor reports it
and carries on, it never decides the outcome of a run.
"""


class LivecomposeError(Exception):
    """Base class for all livecompose failures."""


class ValidationError(LivecomposeError, ValueError):
    """Input document is missing required fields. Raised before any I/O."""

    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        lines = "\n".join(f"  - {name}" for name in self.missing)
        super().__init__(f"Input document incomplete, missing:\n{lines}")


class FetchError(LivecomposeError):
    """A remote reference could not be resolved to a local file."""


class ProbeError(LivecomposeError):
    """Media duration could not be read."""


class TransformError(LivecomposeError):
    """External tool exited non-zero (or could not be started)."""

    def __init__(self, tool: str, exit_code: int | None, message: str | None = None):
        self.tool = tool
        self.exit_code = exit_code
        if message is None:
            message = f"{tool} failed with exit code {exit_code}"
        super().__init__(message)


class ConcatMismatchError(TransformError):
    """Lossless join failed, usually because segment profiles differ."""


class NotifyError(LivecomposeError):
    """Status event could not be delivered to the coordinator."""
