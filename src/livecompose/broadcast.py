"""Broadcast supervisor — stream a finished asset and report its lifecycle.

States:  IDLE -> STREAMING -> FINISHED | ERRORED

Two things can happen while streaming: the grace timer fires (confirm
"started" to the coordinator) or the ffmpeg process exits. Both are pushed
onto one queue and handled by the supervising thread in arrival order:

  - grace: if still STREAMING, the child is still running and "started"
           was not sent yet, emit it.
  - exit:  cancel the timer, move to FINISHED (code 0) or ERRORED, emit
           "finished" / "error", then delete the source file.

Because the terminal event is handled by the same consumer, "started" is
always observed before the terminal event and can never follow it. A
notification that fails is reported and does not change the outcome,
which depends only on the process exit status.
"""

import enum
import queue
import subprocess
import sys
import threading
from dataclasses import dataclass, field
from pathlib import Path

from .errors import NotifyError
from .notify import StatusEvent
from .process import FFMPEG
from .profiles import STREAM_PROFILE, stream_args

GRACE_SECONDS = 60.0


class BroadcastState(enum.Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    FINISHED = "finished"
    ERRORED = "errored"


@dataclass
class BroadcastRun:
    """Outcome of one supervised stream."""

    job_id: str
    source: Path
    state: BroadcastState = BroadcastState.IDLE
    exit_code: int | None = None
    error: str | None = None
    events: list[StatusEvent] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is BroadcastState.FINISHED


def stream_command(source: str | Path, stream_url: str, profile: dict | None = None) -> list[str]:
    """ffmpeg argv pushing *source* to *stream_url*."""
    profile = profile or STREAM_PROFILE
    pacing = ["-re"] if profile.get("realtime", True) else []
    return [FFMPEG, *pacing, "-i", str(source), *stream_args(profile), stream_url]


class BroadcastSupervisor:
    """Runs one stream process and emits started/finished/error events.

    Args:
        job_id: Id reported to the coordinator.
        source: Local file to stream. Deleted after the run if
            delete_source is set.
        stream_url: Destination endpoint (rtmp://...).
        notifier: Object with ``send(StatusEvent)``; may raise NotifyError.
        grace_seconds: Delay before "started" is confirmed.
        profile: Stream encoding profile.
        delete_source: Remove *source* once the process has exited.
        spawn: Callable taking an argv and returning a Popen-like object
            with ``wait()``. Defaults to subprocess.Popen (output inherited).
    """

    def __init__(
        self,
        job_id: str,
        source: str | Path,
        stream_url: str,
        notifier,
        grace_seconds: float = GRACE_SECONDS,
        profile: dict | None = None,
        delete_source: bool = True,
        spawn=subprocess.Popen,
    ):
        self.job_id = job_id
        self.source = Path(source)
        self.stream_url = stream_url
        self.notifier = notifier
        self.grace_seconds = grace_seconds
        self.profile = profile
        self.delete_source = delete_source
        self._spawn = spawn

    def run(self) -> BroadcastRun:
        """Stream to completion. Blocks until the process exits."""
        run = BroadcastRun(job_id=self.job_id, source=self.source)
        cmd = stream_command(self.source, self.stream_url, self.profile)

        print(f"Streaming {self.source} -> {self.stream_url} (id: {self.job_id})", flush=True)
        try:
            proc = self._spawn(cmd)
        except OSError as exc:
            self._terminate(run, BroadcastState.ERRORED, None, f"could not start ffmpeg: {exc}")
            return run

        run.state = BroadcastState.STREAMING
        events = queue.Queue()

        timer = threading.Timer(self.grace_seconds, events.put, args=(("grace", None),))
        timer.daemon = True
        timer.start()

        waiter = threading.Thread(
            target=lambda: events.put(("exit", proc.wait())), daemon=True,
        )
        waiter.start()

        started_sent = False
        while True:
            kind, value = events.get()
            if kind == "grace":
                # exit may not be queued yet even though the child is gone
                running = proc.poll() is None
                if run.state is BroadcastState.STREAMING and running and not started_sent:
                    started_sent = True
                    self._emit(run, StatusEvent(self.job_id, "started"))
                continue

            timer.cancel()
            if value == 0:
                self._terminate(run, BroadcastState.FINISHED, value, None)
            else:
                self._terminate(run, BroadcastState.ERRORED, value, f"ffmpeg exited with code {value}")
            break

        waiter.join()
        return run

    # ── internals ────────────────────────────────────────────────

    def _terminate(self, run, state, exit_code, error):
        run.state = state
        run.exit_code = exit_code
        run.error = error
        if state is BroadcastState.FINISHED:
            print("  DONE   stream finished", flush=True)
            self._emit(run, StatusEvent(self.job_id, "finished"))
        else:
            print(f"  ERROR  {error}", file=sys.stderr, flush=True)
            self._emit(run, StatusEvent(self.job_id, "error", error))
        if self.delete_source:
            self._remove_source()

    def _emit(self, run, event):
        run.events.append(event)
        try:
            self.notifier.send(event)
        except NotifyError as exc:
            print(f"  WARN   {exc}", file=sys.stderr, flush=True)

    def _remove_source(self):
        try:
            self.source.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            print(f"  WARN   could not remove {self.source}: {exc}", file=sys.stderr, flush=True)
            return
        print(f"  CLEAN  {self.source}", flush=True)
