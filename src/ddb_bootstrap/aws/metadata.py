"""Table descriptions read once from the source and destination tables."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from botocore.exceptions import BotoCoreError, ClientError

from ddb_bootstrap.errors import BootstrapError, ErrorKind
from ddb_bootstrap.planning.capacity import TableCapacity

logger = logging.getLogger(__name__)

__all__ = ["TableMetadata", "describe_table", "parse_table_description"]

ON_DEMAND = "PAY_PER_REQUEST"


@dataclass(frozen=True)
class TableMetadata:
    """Read-once snapshot of a table's description."""

    name: str
    capacity: Optional[TableCapacity]
    """None for on-demand tables (no fixed capacity)"""

    size_bytes: int = 0
    item_count: int = 0
    billing_mode: str = "PROVISIONED"


def parse_table_description(description: dict) -> TableMetadata:
    """Convert a DescribeTable ``Table`` mapping into TableMetadata."""
    billing_mode = (description.get("BillingModeSummary") or {}).get("BillingMode", "PROVISIONED")
    throughput = description.get("ProvisionedThroughput")

    capacity = None
    if billing_mode != ON_DEMAND and throughput is not None:
        capacity = TableCapacity(
            read_units=float(throughput.get("ReadCapacityUnits", 0)),
            write_units=float(throughput.get("WriteCapacityUnits", 0)),
        )

    return TableMetadata(
        name=description["TableName"],
        capacity=capacity,
        size_bytes=int(description.get("TableSizeBytes", 0)),
        item_count=int(description.get("ItemCount", 0)),
        billing_mode=billing_mode,
    )


def describe_table(client, table_name: str) -> TableMetadata:
    """
    Fetch table metadata.

    Raises:
        BootstrapError: CONFIGURATION if the table cannot be described
    """
    try:
        response = client.describe_table(TableName=table_name)
    except (ClientError, BotoCoreError) as exc:
        raise BootstrapError(
            ErrorKind.CONFIGURATION,
            f"Cannot describe table {table_name}: {exc}",
        ) from exc

    meta = parse_table_description(response["Table"])
    logger.info(
        "Table %s: billing=%s capacity=%s size=%d bytes items~%d",
        meta.name, meta.billing_mode, meta.capacity, meta.size_bytes, meta.item_count,
    )
    return meta
