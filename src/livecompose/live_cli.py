"""CLI for one-shot lives — download a shared clip and stream it.

The input document carries ``id``, ``video_url`` (a Drive share link)
and ``stream_url``. The clip is downloaded to <work-dir>/<id>.mp4,
streamed under the broadcast supervisor, then deleted.

Usage:
    livecompose live live.json --status-url https://.../status.php
"""

import argparse
import sys
from pathlib import Path

from .acquire import LinkFetcher
from .broadcast_cli import add_stream_arguments, supervise
from .common import check_job_id
from .errors import FetchError, LivecomposeError, ValidationError
from .job import load_job_document

REQUIRED_FIELDS = ("id", "video_url", "stream_url")


def parse_live_document(document: dict) -> dict:
    """Validate a live document.

    Raises:
        ValidationError: Missing id, video_url or stream_url.
        ValueError: id can't be used as a file name.
    """
    if not isinstance(document, dict):
        raise ValidationError(list(REQUIRED_FIELDS))
    missing = [
        key for key in REQUIRED_FIELDS
        if not str(document.get(key) or "").strip()
    ]
    if missing:
        raise ValidationError(missing)
    live = {key: str(document[key]).strip() for key in REQUIRED_FIELDS}
    check_job_id(live["id"])
    return live


def main(args=None):
    parser = argparse.ArgumentParser(
        description="Download a shared clip and stream it live.",
    )
    parser.add_argument(
        "document",
        help="JSON/YAML document with id, video_url, stream_url",
    )
    parser.add_argument(
        "--work-dir", default=".",
        help="Where the clip is downloaded (default: current directory)",
    )
    add_stream_arguments(parser)
    parsed = parser.parse_args(args)

    if not parsed.status_url:
        parser.error("--status-url is required (or set SERVER_STATUS_URL)")

    try:
        live = parse_live_document(load_job_document(parsed.document))
        print(f"Starting live for video id: {live['id']}")

        destination = Path(parsed.work_dir) / f"{live['id']}.mp4"
        try:
            LinkFetcher().fetch(live["video_url"], destination)
        except FetchError:
            destination.unlink(missing_ok=True)
            raise
        print("Download complete.")

        supervise(parsed, live["id"], destination, live["stream_url"])
    except (LivecomposeError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
