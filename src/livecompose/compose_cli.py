"""CLI for composition — input document in, finished asset out.

Usage:
    livecompose compose --input input.json
    livecompose compose --input job.yaml --keyfile chave.json \
        --work-dir /tmp/job1 --output final.mp4
    livecompose compose --input input.json --validate

Environment defaults: INPUTFILE (input document), KEYFILE (service
account key, default chave.json).
"""

import argparse
import os
import sys

from .acquire import DriveFetcher
from .errors import LivecomposeError
from .job import load_job_document, parse_job
from .pipeline import CompositionPipeline


def _parse_args(args=None):
    parser = argparse.ArgumentParser(
        description="Compose the final video from an input document.",
    )
    parser.add_argument(
        "--input", default=os.environ.get("INPUTFILE", "input.json"),
        help="Input document, JSON or YAML (default: $INPUTFILE or input.json)",
    )
    parser.add_argument(
        "--keyfile", default=os.environ.get("KEYFILE", "chave.json"),
        help="Service account key for Drive (default: $KEYFILE or chave.json)",
    )
    parser.add_argument(
        "--work-dir", default=".",
        help="Directory for temporary files (default: current directory)",
    )
    parser.add_argument(
        "--output", default=None,
        help="Final video path (default: <work-dir>/video_final_completo.mp4)",
    )
    parser.add_argument(
        "--stream-info", default=None,
        help="Hand-off file path (default: <work-dir>/stream_info.json)",
    )
    parser.add_argument(
        "--validate", action="store_true",
        help="Validate the input document only (no downloads, no rendering)",
    )
    return parser.parse_args(args)


def main(args=None):
    parsed = _parse_args(args)

    try:
        print(f"Reading {parsed.input}...")
        document = load_job_document(parsed.input)

        if parsed.validate:
            job = parse_job(document)
            print(f"Input document valid: job {job.id}")
            print(f"  segments: {len([r for r in job.segment_refs if r])} + 2 principal halves")
            print(f"  stream_url: {job.stream_url or '(none)'}")
            return

        pipeline = CompositionPipeline(
            DriveFetcher(parsed.keyfile),
            work_dir=parsed.work_dir,
            output=parsed.output,
            stream_info_path=parsed.stream_info,
        )
        pipeline.run(document)
    except (LivecomposeError, FileNotFoundError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
