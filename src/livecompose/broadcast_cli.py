"""CLI for broadcasting a composed video.

Reads the stream_info.json hand-off written by `livecompose compose` and
streams the composed file to its stream_url, reporting status.

Usage:
    livecompose broadcast
    livecompose broadcast --video video_final_completo.mp4 \
        --stream-info stream_info.json --status-url https://.../status.php
    livecompose broadcast --no-realtime --crf 18

Environment defaults: SERVER_STATUS_URL (required unless --status-url).
"""

import argparse
import os
import sys
from pathlib import Path

from .broadcast import GRACE_SECONDS, BroadcastSupervisor
from .errors import LivecomposeError
from .job import load_stream_info
from .notify import StatusNotifier
from .pipeline import DEFAULT_OUTPUT_NAME, DEFAULT_STREAM_INFO_NAME
from .profiles import STREAM_PROFILE, merge_profile


def add_stream_arguments(parser):
    """Flags shared by the broadcast and live subcommands."""
    parser.add_argument(
        "--status-url", default=os.environ.get("SERVER_STATUS_URL"),
        help="Coordinator status endpoint (default: $SERVER_STATUS_URL)",
    )
    parser.add_argument(
        "--grace", type=float, default=GRACE_SECONDS,
        help=f"Seconds before 'started' is confirmed (default: {GRACE_SECONDS:g})",
    )
    parser.add_argument(
        "--crf", type=int, default=None,
        help=f"Stream CRF (default: {STREAM_PROFILE['crf']})",
    )
    parser.add_argument(
        "--no-realtime", action="store_true",
        help="Read input as fast as possible instead of at native rate (-re)",
    )
    parser.add_argument(
        "--keep-source", action="store_true",
        help="Don't delete the streamed file afterwards",
    )


def stream_profile_from_args(parsed) -> dict:
    overrides = {}
    if parsed.crf is not None:
        overrides["crf"] = parsed.crf
    if parsed.no_realtime:
        overrides["realtime"] = False
    return merge_profile(STREAM_PROFILE, overrides)


def supervise(parsed, job_id: str, source: Path, stream_url: str) -> None:
    """Run the supervisor; exit 1 if the stream errored."""
    supervisor = BroadcastSupervisor(
        job_id, source, stream_url,
        notifier=StatusNotifier(parsed.status_url),
        grace_seconds=parsed.grace,
        profile=stream_profile_from_args(parsed),
        delete_source=not parsed.keep_source,
    )
    run = supervisor.run()
    if not run.ok:
        print(f"Error: stream failed: {run.error}", file=sys.stderr)
        sys.exit(1)
    print(f"\nDone: streamed {source}")


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Stream a composed video to its live endpoint.",
    )
    parser.add_argument(
        "--video", default=DEFAULT_OUTPUT_NAME,
        help=f"Composed video to stream (default: {DEFAULT_OUTPUT_NAME})",
    )
    parser.add_argument(
        "--stream-info", default=DEFAULT_STREAM_INFO_NAME,
        help=f"Hand-off file from the compose step (default: {DEFAULT_STREAM_INFO_NAME})",
    )
    add_stream_arguments(parser)
    parsed = parser.parse_args(args)

    if not parsed.status_url:
        parser.error("--status-url is required (or set SERVER_STATUS_URL)")

    try:
        video = Path(parsed.video)
        if not video.exists():
            raise FileNotFoundError(f"Video not found: {video}")
        info = load_stream_info(parsed.stream_info)
        supervise(parsed, info["id"], video, info["stream_url"])
    except (LivecomposeError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
