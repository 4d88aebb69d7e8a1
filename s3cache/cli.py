"""Command-line entry point.

Usage:
    python -m s3cache restore       # restore, recording state for save
    python -m s3cache save          # save, skipping an exact restore hit
    python -m s3cache restore-only  # restore without cross-phase state
    python -m s3cache save-only     # save without cross-phase state

Inputs come from INPUT_* environment variables as set by the runner;
command-line options override them for local use.
"""

import argparse
import asyncio
import os
import sys

from s3cache.action.inputs import input_env_name
from s3cache.action.restore import restore_only_run, restore_run
from s3cache.action.save import save_only_run, save_run
from s3cache.core.constants import Inputs
from s3cache.core.logging import configure_logging


PRIMARY_PLACEHOLDER = "<primary-key>"

COMMANDS = {
    "restore": restore_run,
    "restore-only": restore_only_run,
    "save": save_run,
    "save-only": save_only_run,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="s3cache",
        description="Restore and save CI cache entries in an S3 bucket",
    )
    parser.add_argument("command", choices=sorted(COMMANDS), help="Phase to run")
    parser.add_argument("--key", help="Primary cache key")
    parser.add_argument(
        "--path",
        action="append",
        help="Cache path (repeatable)",
    )
    parser.add_argument(
        "--restore-key",
        action="append",
        dest="restore_keys",
        help="Fallback key tried after the primary key (repeatable)",
    )
    parser.add_argument(
        "--fail-on-cache-miss",
        action="store_true",
        default=None,
        help="Fail when no key restores",
    )
    parser.add_argument(
        "--lookup-only",
        action="store_true",
        default=None,
        help="Check for a cache entry without downloading it",
    )
    return parser


def build_environ(args: argparse.Namespace) -> dict[str, str]:
    """Overlay command-line options on the process environment as inputs."""
    environ = dict(os.environ)
    if args.key is not None:
        environ[input_env_name(Inputs.KEY)] = args.key
    if args.path:
        environ[input_env_name(Inputs.PATH)] = "\n".join(args.path)
    if args.restore_keys:
        # The first restore key is skipped as the conventional primary repeat;
        # blank lines are dropped, so the placeholder must never be blank
        primary = environ.get(input_env_name(Inputs.KEY), "").strip() or PRIMARY_PLACEHOLDER
        environ[input_env_name(Inputs.RESTORE_KEYS)] = "\n".join(
            [primary, *args.restore_keys]
        )
    if args.fail_on_cache_miss is not None:
        environ[input_env_name(Inputs.FAIL_ON_CACHE_MISS)] = "true"
    if args.lookup_only is not None:
        environ[input_env_name(Inputs.LOOKUP_ONLY)] = "true"
    return environ


def main(argv: list[str] | None = None) -> int:
    """Parse arguments, run the phase and return its exit code."""
    args = build_parser().parse_args(argv)
    configure_logging()
    environ = build_environ(args)
    command = COMMANDS[args.command]
    return asyncio.run(command(environ=environ))


if __name__ == "__main__":
    sys.exit(main())
