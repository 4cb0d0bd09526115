"""Main module for the thumbnail pipeline CLI."""

import sys
import os
import json
import logging
import argparse
from typing import Any, Dict, List, Optional

from .core import ThumbnailPipelineError, get_logger, load_config
from .core.config import (
    DECODE_KEYS_VAR,
    FAILURE_POLICY_VAR,
    SCRATCH_DIR_VAR,
    TARGET_BUCKET_VAR,
)
from .core.factories import ProcessingPipelineFactory
from .core.models import FailurePolicy


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ``thumbnail-pipeline`` command."""
    parser = argparse.ArgumentParser(
        prog="thumbnail-pipeline",
        description="Thumbnail Pipeline - create 100x100 thumbnails for S3 upload events",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay a saved S3 event against the bucket in $TARGET_BUCKET
  thumbnail-pipeline process --event-file event.json

  # Keep going past failed records
  thumbnail-pipeline process --event-file event.json \\
                             --target-bucket my-thumbs --failure-policy isolate

  # Show version
  thumbnail-pipeline version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    process_parser = subparsers.add_parser(
        "process", help="Run an S3 event notification file through the pipeline"
    )
    process_parser.add_argument(
        "--event-file",
        required=True,
        help="Path to an S3 event JSON document ('-' reads stdin)",
    )
    process_parser.add_argument(
        "--target-bucket",
        default=None,
        help=f"Destination bucket (defaults to ${TARGET_BUCKET_VAR})",
    )
    process_parser.add_argument(
        "--failure-policy",
        default=None,
        choices=[p.value for p in FailurePolicy],
        help=f"Batch failure policy (defaults to ${FAILURE_POLICY_VAR} or fail_fast)",
    )
    process_parser.add_argument(
        "--scratch-dir", default=None, help="Root directory for scratch files"
    )
    process_parser.add_argument(
        "--raw-keys",
        action="store_true",
        help="Use object keys exactly as they appear in the event (no URL decoding)",
    )
    process_parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )

    subparsers.add_parser("version", help="Show version information")

    return parser


def _read_event(path: str) -> Dict[str, Any]:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _environment(args: argparse.Namespace) -> Dict[str, str]:
    environ = dict(os.environ)
    if args.target_bucket:
        environ[TARGET_BUCKET_VAR] = args.target_bucket
    if args.failure_policy:
        environ[FAILURE_POLICY_VAR] = args.failure_policy
    if args.scratch_dir:
        environ[SCRATCH_DIR_VAR] = args.scratch_dir
    if args.raw_keys:
        environ[DECODE_KEYS_VAR] = "false"
    return environ


def run_process(args: argparse.Namespace) -> int:
    """Execute the ``process`` subcommand and return the exit code."""
    logger = get_logger("cli")

    if args.debug:
        logger.setLevel(logging.DEBUG)
        logging.getLogger().setLevel(logging.DEBUG)

    try:
        config = load_config(_environment(args))
        event = _read_event(args.event_file)
        pipeline = ProcessingPipelineFactory.create_pipeline(config)
        response = pipeline.process_event(event)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read event file '{args.event_file}': {e}")
        return 1
    except ThumbnailPipelineError as e:
        logger.error(f"Processing failed: {e}", exc_info=True)
        return 1

    print(json.dumps(response.to_dict(), indent=2))
    return 0 if response.failed_count == 0 else 2


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the ``thumbnail-pipeline`` command-line interface."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "process":
        sys.exit(run_process(args))

    elif args.command == "version":
        print("Thumbnail Pipeline CLI")
        print("Version 0.1.0")
        print("S3-triggered 100x100 thumbnail generation")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
