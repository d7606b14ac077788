# ddb_bootstrap/cli.py
"""Command-line entry point: ``ddb-bootstrap``."""
from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from pathlib import Path
from typing import List, Optional

from ddb_bootstrap.config import CopyJobConfig
from ddb_bootstrap.constants import (
    DEFAULT_MAX_WRITE_THREADS,
    DEFAULT_THROUGHPUT_RATIO,
    EXIT_FAILURE,
)
from ddb_bootstrap.core import run_copy_job
from ddb_bootstrap.logger import setup_logger
from ddb_bootstrap.transfer.scanner import SegmentScanner

logger = logging.getLogger(__name__)

__all__ = ["parse_args", "main"]


def _ratio(value: str) -> float:
    try:
        ratio = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not 0 < ratio <= 1:
        raise argparse.ArgumentTypeError(f"ratio must be in (0, 1], got {ratio}")
    return ratio


def _non_negative(value: str) -> float:
    try:
        rate = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if rate < 0:
        raise argparse.ArgumentTypeError(f"must not be negative, got {rate}")
    return rate


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}")
    if n < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {n}")
    return n


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="ddb-bootstrap",
        description="Copy every item of one DynamoDB table into another, "
                    "paced to a share of each table's provisioned throughput.",
    )
    src = p.add_argument_group("source")
    src.add_argument("--source-table", "--sourceTable", required=True, help="Table to read from")
    src.add_argument("--source-endpoint", "--sourceEndpoint", default=None,
                     help="DynamoDB endpoint URL for the source (default: region endpoint)")
    src.add_argument("--source-region", default=None, help="AWS region of the source table")

    dst = p.add_argument_group("destination")
    dst.add_argument("--destination-table", "--destinationTable", required=True,
                     help="Table to write into (must already exist)")
    dst.add_argument("--destination-endpoint", "--destinationEndpoint", default=None,
                     help="DynamoDB endpoint URL for the destination (default: region endpoint)")
    dst.add_argument("--destination-region", default=None,
                     help="AWS region of the destination table")

    tp = p.add_argument_group("throughput")
    tp.add_argument("--read-throughput-ratio", "--readThroughputRatio", type=_ratio,
                    default=DEFAULT_THROUGHPUT_RATIO,
                    help=f"Share of source read capacity to use (default: {DEFAULT_THROUGHPUT_RATIO})")
    tp.add_argument("--write-throughput-ratio", "--writeThroughputRatio", type=_ratio,
                    default=DEFAULT_THROUGHPUT_RATIO,
                    help=f"Share of destination write capacity to use (default: {DEFAULT_THROUGHPUT_RATIO})")
    tp.add_argument("--throughput-rate", "--throughputRate", type=_non_negative, default=0.0,
                    help="Fixed units/sec for both sides, overriding the ratios (0: use ratios)")
    tp.add_argument("--max-write-threads", "--maxWriteThreads", type=_positive_int,
                    default=DEFAULT_MAX_WRITE_THREADS,
                    help=f"Maximum concurrent writer threads (default: {DEFAULT_MAX_WRITE_THREADS})")
    tp.add_argument("--consistent-scan", "--consistentScan", action="store_true",
                    help="Use strongly consistent reads for the scan")

    acct = p.add_argument_group("cross-account")
    acct.add_argument("--cross-account", "--crossAccount", action="store_true",
                      help="Use a named credentials profile for each side")
    acct.add_argument("--source-account-profile", "--sourceAccountProfile", default=None,
                      help="Credentials profile for the source (required with --cross-account)")
    acct.add_argument("--destination-account-profile", "--destinationAccountProfile", default=None,
                      help="Credentials profile for the destination (required with --cross-account)")

    sec = p.add_argument_group("sections")
    sec.add_argument("--section", type=int, default=0,
                     help="Index of the section this process copies (default: 0)")
    sec.add_argument("--total-sections", "--totalSections", type=int, default=1,
                     help="Number of cooperating processes splitting the table (default: 1)")

    out = p.add_argument_group("output")
    out.add_argument("--log-dir", type=Path, default=None,
                     help="Directory for a timestamped log file (default: console only)")
    out.add_argument("--verbose", "-v", action="store_true", help="Log at DEBUG level")
    out.add_argument("--no-progress", action="store_true",
                     help="Do not print the run header, progress bar or summary")
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logger(
        args.log_dir,
        level=logging.DEBUG if args.verbose else logging.INFO,
        console=True,
    )

    config = CopyJobConfig.from_args(args)
    show = not args.no_progress

    try:
        outcome = run_copy_job(
            config,
            scanner_factory=partial(SegmentScanner, show_progress=show),
            report=show,
        )
    except KeyboardInterrupt:
        logger.error("Interrupted before the transfer started")
        return EXIT_FAILURE

    if not outcome.ok:
        print(f"ERROR: {outcome.error.message}", file=sys.stderr)
    return outcome.exit_code


if __name__ == "__main__":
    sys.exit(main())
