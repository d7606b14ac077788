"""Worker pool sizing and the bounded executor that runs scan and write tasks."""

from ddb_bootstrap.executor.pool import (
    BackpressurePolicy,
    BoundedThreadPoolExecutor,
    PoolSpec,
    build_pool,
    create_executor,
)

__all__ = [
    "BackpressurePolicy",
    "BoundedThreadPoolExecutor",
    "PoolSpec",
    "build_pool",
    "create_executor",
]
