"""
Data movement between the two tables.

Key components:
    - scanner: parallel segment scan of the source (the producer)
    - consumer: batched, retried writes into the destination (the consumer)
    - throttle: capacity-unit rate limiting shared by one side's threads
"""

from ddb_bootstrap.transfer.consumer import BatchWriteConsumer
from ddb_bootstrap.transfer.scanner import SegmentScanner, TransferStats
from ddb_bootstrap.transfer.throttle import RateLimiter

__all__ = ["BatchWriteConsumer", "SegmentScanner", "TransferStats", "RateLimiter"]
