"""
functions/utils/cosmos_client.py

WHAT THIS FILE IS FOR
---------------------
Construction of the long-lived, shared `azure.cosmos.aio.CosmosClient`.

The client is built exactly once per process (from the FastAPI lifespan
handler, via CosmosQueryExecutor.open) and reused for every request.
Connection pooling and retry policy belong to the SDK.

AUTH MODES
----------
- KEY:                       account key from Settings.cosmos_key
- DEFAULT_AZURE_CREDENTIAL:  azure.identity.aio.DefaultAzureCredential
                             (managed identity, az login, env vars, ...)

The Python SDK talks to Cosmos DB through the gateway only, so there is
no direct/gateway connection-mode switch here.
"""

from __future__ import annotations

from typing import Any

import structlog
from azure.cosmos.aio import CosmosClient
from azure.identity.aio import DefaultAzureCredential

from functions.utils.settings import Settings

logger = structlog.get_logger(__name__)

AUTH_MODE_KEY = "KEY"
AUTH_MODE_DEFAULT_CREDENTIAL = "DEFAULT_AZURE_CREDENTIAL"


def build_credential(settings: Settings) -> Any:
    """
    Resolve the credential for the configured auth mode.

    Raises:
        ValueError: KEY mode without a key, or an unknown auth mode.
    """
    mode = str(settings.auth_mode).upper()

    if mode == AUTH_MODE_DEFAULT_CREDENTIAL:
        logger.info("cosmos_auth_configured", auth_mode=mode)
        return DefaultAzureCredential()

    if mode == AUTH_MODE_KEY:
        if not settings.cosmos_key:
            raise ValueError("cosmos_key must be set when auth_mode is KEY")
        logger.info("cosmos_auth_configured", auth_mode=mode)
        return settings.cosmos_key

    raise ValueError(
        f"Invalid auth_mode: {settings.auth_mode}. "
        f"Valid values are: {AUTH_MODE_KEY}, {AUTH_MODE_DEFAULT_CREDENTIAL}"
    )


def build_cosmos_client(settings: Settings, credential: Any) -> CosmosClient:
    logger.info(
        "cosmos_client_initializing",
        endpoint=settings.cosmos_endpoint,
        database=settings.cosmos_database,
        request_timeout_seconds=settings.request_timeout_seconds,
    )
    return CosmosClient(
        url=str(settings.cosmos_endpoint),
        credential=credential,
        connection_timeout=int(settings.request_timeout_seconds),
    )
