#!/usr/bin/env python3
"""
s3state command line

Inspect and edit records in the configured bucket.

Usage:
    python -m s3state read user/42 conversation/abc
    python -m s3state write user/42 '{"count": 1, "version": "*"}'
    python -m s3state write user/42 '{"count": 2}' --force
    python -m s3state delete user/42
    python -m s3state health

    # Configuration comes from the environment
    S3STATE_S3_BUCKET=bot-state S3STATE_S3_ENDPOINT_URL=http://localhost:9000 \\
        python -m s3state read user/42
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional, Sequence, TextIO

from s3state.core.constants import WILDCARD_VERSION
from s3state.core.errors import ConfigurationError, ConflictError, StorageError
from s3state.observability.logging import LogLevel, setup_logging
from s3state.storage import BackendType, StoreConfig, VersionedObjectStore, create_store

logger = logging.getLogger("s3state.cli")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="s3state", description="Versioned JSON records on S3")
    p.add_argument("--log-level", default="warning", help="debug|info|warning|error (default: warning)")
    p.add_argument("--json-logs", action="store_true", help="Emit logs as JSON lines")

    sub = p.add_subparsers(dest="command", required=True)

    read = sub.add_parser("read", help="Print records as JSON")
    read.add_argument("keys", nargs="+")

    write = sub.add_parser("write", help="Write one record")
    write.add_argument("key")
    write.add_argument("record", help="JSON object")
    write.add_argument("--force", action="store_true", help="Overwrite regardless of the stored version")

    delete = sub.add_parser("delete", help="Delete records")
    delete.add_argument("keys", nargs="+")

    sub.add_parser("health", help="Check that the bucket is reachable")
    return p


async def run_command(
    args: argparse.Namespace,
    store: VersionedObjectStore,
    out: TextIO,
) -> int:
    """Execute one parsed command against a store."""
    if args.command == "read":
        items = await store.read(args.keys)
        json.dump(items, out, indent=2, ensure_ascii=False)
        out.write("\n")
        return EXIT_OK

    if args.command == "write":
        try:
            record = json.loads(args.record)
        except ValueError as e:
            print(f"error: record is not valid JSON: {e}", file=sys.stderr)
            return EXIT_USAGE
        if not isinstance(record, dict):
            print("error: record must be a JSON object", file=sys.stderr)
            return EXIT_USAGE
        if args.force:
            record[store.version_field] = WILDCARD_VERSION

        try:
            await store.write({args.key: record})
        except ConflictError as e:
            print(f"conflict: {e.message}", file=sys.stderr)
            return EXIT_FAILURE
        except StorageError as e:
            print(f"error: {e.message}", file=sys.stderr)
            return EXIT_FAILURE
        return EXIT_OK

    if args.command == "delete":
        await store.delete(args.keys)
        return EXIT_OK

    if args.command == "health":
        health_check = getattr(store.client, "health_check", None)
        if health_check is None:
            json.dump({"connected": True, "bucket": store.bucket}, out, indent=2)
            out.write("\n")
            return EXIT_OK
        result = await health_check()
        if result.is_err():
            print(f"error: {result.error.message}", file=sys.stderr)
            return EXIT_FAILURE
        json.dump(result.unwrap(), out, indent=2, default=str)
        out.write("\n")
        return EXIT_OK

    raise AssertionError(f"unhandled command {args.command!r}")


async def main(
    argv: Optional[Sequence[str]] = None,
    store: Optional[VersionedObjectStore] = None,
    out: Optional[TextIO] = None,
) -> int:
    args = get_parser().parse_args(argv)
    out = out or sys.stdout

    try:
        level = LogLevel.parse(args.log_level)
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_USAGE
    setup_logging(level, json_output=args.json_logs)

    if store is None:
        try:
            config = StoreConfig.from_env()
        except ConfigurationError as e:
            print(f"Configuration error: {e.message}", file=sys.stderr)
            return EXIT_USAGE
        if config.backend == BackendType.IN_MEMORY:
            logger.warning(
                "No bucket configured (set S3STATE_S3_BUCKET); "
                "using an in-memory store that is discarded on exit"
            )
        store = create_store(config)

    logger.debug("Running %s against bucket %s", args.command, store.bucket)
    try:
        return await run_command(args, store, out)
    finally:
        await store.close()


def cli() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
