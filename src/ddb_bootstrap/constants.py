"""Operational constants for the table copy pipeline."""
from __future__ import annotations

import os

__all__ = [
    "MAX_CONN_SIZE",
    "EXECUTOR_CORE_POOL_SIZE",
    "EXECUTOR_KEEP_ALIVE_MS",
    "DEFAULT_SEGMENTS",
    "MAX_SEGMENTS",
    "READ_UNITS_PER_SEGMENT",
    "SEGMENT_SIZE_BYTES",
    "DEFAULT_MAX_WRITE_THREADS",
    "DEFAULT_THROUGHPUT_RATIO",
    "MAX_BATCH_WRITE_ITEMS",
    "SCAN_PAGE_LIMIT",
    "MAX_WRITE_RETRIES",
    "EXIT_OK",
    "EXIT_FAILURE",
    "EXIT_CONFIGURATION",
    "EXIT_SECTION_OUT_OF_RANGE",
    "EXIT_EXECUTION_FAULT",
    "EXIT_DESTINATION_PROFILE_MISSING",
    "EXIT_SOURCE_PROFILE_MISSING",
]

# Client / executor tuning
MAX_CONN_SIZE = 200
EXECUTOR_CORE_POOL_SIZE = (os.cpu_count() or 4) * 4
EXECUTOR_KEEP_ALIVE_MS = 30_000

# Segment planning
DEFAULT_SEGMENTS = 10  # used when the source table reports no read capacity
MAX_SEGMENTS = 100
READ_UNITS_PER_SEGMENT = 10
SEGMENT_SIZE_BYTES = 2 * (1 << 30)  # one segment per 2 GiB of table data

# Throughput
DEFAULT_MAX_WRITE_THREADS = 128
DEFAULT_THROUGHPUT_RATIO = 0.5

# DynamoDB request limits
MAX_BATCH_WRITE_ITEMS = 25
SCAN_PAGE_LIMIT = 100
MAX_WRITE_RETRIES = 8

# Process exit statuses
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_SECTION_OUT_OF_RANGE = 3
EXIT_EXECUTION_FAULT = 4
EXIT_DESTINATION_PROFILE_MISSING = 98
EXIT_SOURCE_PROFILE_MISSING = 99
