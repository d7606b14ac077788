"""DynamoDB client construction for the source and destination sides."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ddb_bootstrap.config import CopyJobConfig, ExecutorSettings
from ddb_bootstrap.constants import (
    EXIT_DESTINATION_PROFILE_MISSING,
    EXIT_SOURCE_PROFILE_MISSING,
    MAX_CONN_SIZE,
)
from ddb_bootstrap.errors import BootstrapError, ErrorKind

logger = logging.getLogger(__name__)

__all__ = ["ClientContext", "resolve_client_contexts", "build_client"]


@dataclass(frozen=True)
class ClientContext:
    """Where and as whom one side of the copy talks to DynamoDB."""

    endpoint: Optional[str] = None
    region: Optional[str] = None
    profile: Optional[str] = None  # None -> default credential chain
    max_connections: int = MAX_CONN_SIZE

    def describe(self) -> str:
        where = self.endpoint or self.region or "default region"
        who = f"profile {self.profile}" if self.profile else "default credentials"
        return f"{where} ({who})"


def resolve_client_contexts(
        config: CopyJobConfig,
        settings: ExecutorSettings,
) -> Tuple[ClientContext, ClientContext]:
    """
    Resolve independent (source, destination) client contexts.

    Raises:
        BootstrapError: CONFIGURATION with a side-specific exit code when
            cross-account mode is requested without that side's profile
    """
    source_profile = None
    destination_profile = None

    if config.cross_account:
        if not config.source_account_profile:
            raise BootstrapError(
                ErrorKind.CONFIGURATION,
                "'--cross-account' must specify a --source-account-profile",
                exit_code=EXIT_SOURCE_PROFILE_MISSING,
            )
        if not config.destination_account_profile:
            raise BootstrapError(
                ErrorKind.CONFIGURATION,
                "'--cross-account' must specify a --destination-account-profile",
                exit_code=EXIT_DESTINATION_PROFILE_MISSING,
            )
        source_profile = config.source_account_profile
        destination_profile = config.destination_account_profile

    source = ClientContext(
        endpoint=config.source_endpoint,
        region=config.source_region,
        profile=source_profile,
        max_connections=settings.max_connections,
    )
    destination = ClientContext(
        endpoint=config.destination_endpoint,
        region=config.destination_region,
        profile=destination_profile,
        max_connections=settings.max_connections,
    )
    return source, destination


def build_client(ctx: ClientContext):
    """
    Create a low-level DynamoDB client with its own session and connection pool.

    Raises:
        BootstrapError: CONFIGURATION when the session or client cannot be
            created (unknown profile, no region, bad endpoint)
    """
    try:
        session = boto3.Session(profile_name=ctx.profile, region_name=ctx.region)
        client = session.client(
            "dynamodb",
            endpoint_url=ctx.endpoint,
            config=BotoConfig(max_pool_connections=ctx.max_connections),
        )
    except (BotoCoreError, ClientError, ValueError) as exc:
        raise BootstrapError(
            ErrorKind.CONFIGURATION,
            f"Cannot create DynamoDB client for {ctx.describe()}: {exc}",
        ) from exc
    logger.info("DynamoDB client ready: %s", ctx.describe())
    return client
