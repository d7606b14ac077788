# ddb_bootstrap/config.py
from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from ddb_bootstrap.constants import (
    DEFAULT_MAX_WRITE_THREADS,
    DEFAULT_THROUGHPUT_RATIO,
    EXECUTOR_CORE_POOL_SIZE,
    EXECUTOR_KEEP_ALIVE_MS,
    MAX_CONN_SIZE,
)
from ddb_bootstrap.errors import BootstrapError, ErrorKind

__all__ = ["CopyJobConfig", "ExecutorSettings"]


# Parameters of one copy invocation
@dataclass(frozen=True)
class CopyJobConfig:
    """Resolved parameters for copying one table into another.

    Cross-account mode requires a named credentials profile for each side;
    otherwise both clients use the default credential chain.
    """
    # Tables
    source_table: str
    destination_table: str

    # Endpoints / regions (None -> boto3 defaults)
    source_endpoint: Optional[str] = None
    destination_endpoint: Optional[str] = None
    source_region: Optional[str] = None
    destination_region: Optional[str] = None

    # Throughput
    read_throughput_ratio: float = DEFAULT_THROUGHPUT_RATIO
    write_throughput_ratio: float = DEFAULT_THROUGHPUT_RATIO
    throughput_rate: Optional[float] = None  # overrides both ratios when set
    max_write_threads: int = DEFAULT_MAX_WRITE_THREADS
    consistent_scan: bool = False

    # Credentials
    cross_account: bool = False
    source_account_profile: Optional[str] = None
    destination_account_profile: Optional[str] = None

    # Horizontal split across processes
    section: int = 0
    total_sections: int = 1

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "CopyJobConfig":
        """Build from parsed CLI arguments. A throughput rate of 0 means unset."""
        rate = args.throughput_rate
        return cls(
            source_table=args.source_table,
            destination_table=args.destination_table,
            source_endpoint=args.source_endpoint,
            destination_endpoint=args.destination_endpoint,
            source_region=args.source_region,
            destination_region=args.destination_region,
            read_throughput_ratio=args.read_throughput_ratio,
            write_throughput_ratio=args.write_throughput_ratio,
            throughput_rate=rate if rate else None,
            max_write_threads=args.max_write_threads,
            consistent_scan=args.consistent_scan,
            cross_account=args.cross_account,
            source_account_profile=args.source_account_profile,
            destination_account_profile=args.destination_account_profile,
            section=args.section,
            total_sections=args.total_sections,
        )


# Operational constants, overridable from the environment
@dataclass(frozen=True)
class ExecutorSettings:
    max_connections: int = MAX_CONN_SIZE
    core_pool_size: int = EXECUTOR_CORE_POOL_SIZE
    keep_alive_ms: int = EXECUTOR_KEEP_ALIVE_MS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExecutorSettings":
        """Load settings from DDB_BOOTSTRAP_* environment variables."""
        env = os.environ if environ is None else environ
        try:
            return cls(
                max_connections=int(env.get("DDB_BOOTSTRAP_MAX_CONNECTIONS", MAX_CONN_SIZE)),
                core_pool_size=int(env.get("DDB_BOOTSTRAP_CORE_POOL_SIZE", EXECUTOR_CORE_POOL_SIZE)),
                keep_alive_ms=int(env.get("DDB_BOOTSTRAP_KEEP_ALIVE_MS", EXECUTOR_KEEP_ALIVE_MS)),
            )
        except ValueError as exc:
            raise BootstrapError(
                ErrorKind.CONFIGURATION,
                f"Invalid executor setting in environment: {exc}",
            ) from exc
