"""boto3 client contexts and the table metadata source."""

from ddb_bootstrap.aws.clients import ClientContext, build_client, resolve_client_contexts
from ddb_bootstrap.aws.metadata import TableMetadata, describe_table

__all__ = [
    "ClientContext",
    "build_client",
    "resolve_client_contexts",
    "TableMetadata",
    "describe_table",
]
