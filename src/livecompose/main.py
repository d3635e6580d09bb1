"""Subcommand dispatcher for livecompose.

Usage:
    livecompose compose    --input input.json
    livecompose broadcast  --video video_final_completo.mp4 --stream-info stream_info.json
    livecompose live       live.json
"""

import argparse
import sys


def main(args=None):
    parser = argparse.ArgumentParser(
        prog="livecompose",
        description="Compose videos from remote clips and stream them live.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # Register subcommands. Each delegates to its own module's main().
    subparsers.add_parser("compose", help="Build the final video from an input document")
    subparsers.add_parser("broadcast", help="Stream a composed video described by stream_info.json")
    subparsers.add_parser("live", help="Download a shared clip and stream it")

    # Parse only the subcommand name, pass the rest to the subcommand's parser.
    parsed, remaining = parser.parse_known_args(args)

    if parsed.command is None:
        parser.print_help()
        sys.exit(1)

    if parsed.command == "compose":
        from .compose_cli import main as compose_main
        compose_main(remaining)
    elif parsed.command == "broadcast":
        from .broadcast_cli import main as broadcast_main
        broadcast_main(remaining)
    elif parsed.command == "live":
        from .live_cli import main as live_main
        live_main(remaining)


if __name__ == "__main__":
    main()
