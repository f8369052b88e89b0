"""
functions/query/cosmos_executor.py

WHAT THIS FILE IS FOR
---------------------
This module is the *collaborator boundary* between the sidecar and
Azure Cosmos DB. It executes one `QuerySpec` against one container and
returns exactly one page of results.

It exists to:
- Own the shared `azure.cosmos.aio.CosmosClient` lifecycle (open/close)
- Translate `QuerySpec` / `QueryOptions` into `query_items(...)` kwargs
- Fetch a single page (honoring page size + continuation token)
- Capture per-page diagnostics from the response headers
  (request charge summed over every fetch, last activity id)
- Translate `CosmosHttpResponseError` into `ProviderFault` so the
  normalizer never depends on SDK exception types

CALL FLOW CONTEXT
-----------------
FastAPI (api.py)
  -> CosmosQueryService.execute_query()
      -> CosmosQueryExecutor.execute()
          -> ContainerProxy.query_items(...).by_page(ct)

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Retries, timeouts or cancellation (owned by the SDK)
- Building the response envelope
- Catching non-provider failures (they propagate to the service)
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, Mapping, Optional

import structlog
from azure.cosmos.exceptions import CosmosHttpResponseError

from functions.query.query_translator import QueryOptions, QuerySpec
from functions.query.response_normalizer import UNKNOWN_ACTIVITY_ID, ProviderFault, ProviderPage
from functions.utils.cosmos_client import build_cosmos_client, build_credential
from functions.utils.settings import Settings

logger = structlog.get_logger(__name__)

REQUEST_CHARGE_HEADER = "x-ms-request-charge"
ACTIVITY_ID_HEADER = "x-ms-activity-id"
RETRY_AFTER_MS_HEADER = "x-ms-retry-after-ms"

PROVIDER_FAILURE_MESSAGE = "Cosmos DB request failed"


class CosmosQueryExecutor:
    """
    Thin async adapter around the Cosmos DB SDK.

    - One shared client per process, opened/closed by the app lifespan
    - One page per call
    - Provider errors surface as ProviderFault
    """

    def __init__(self, settings: Settings, client: Any = None) -> None:
        self.settings = settings
        self._database_name = settings.cosmos_database
        self._client = client
        self._credential: Any = None

    @property
    def is_open(self) -> bool:
        return self._client is not None

    async def open(self) -> None:
        if self._client is not None:
            return
        self._credential = build_credential(self.settings)
        self._client = build_cosmos_client(self.settings, self._credential)
        logger.info("cosmos_executor_opened", database=self._database_name)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None

        # key credentials are plain strings; token credentials own sessions
        close_credential = getattr(self._credential, "close", None)
        if close_credential is not None:
            await close_credential()
        self._credential = None
        logger.info("cosmos_executor_closed")

    async def execute(
        self,
        container_name: str,
        spec: QuerySpec,
        options: QueryOptions,
    ) -> ProviderPage:
        """
        Execute the query and return the first page after `options.continuation_token`.

        Raises:
            ProviderFault: Cosmos DB rejected or failed the query.
            RuntimeError: the client was never opened.
        """
        if self._client is None:
            raise RuntimeError("Cosmos client is not initialized")

        container = self._client.get_database_client(self._database_name).get_container_client(
            container_name
        )

        # the SDK may fetch several times for one page (empty fetches,
        # one fetch per partition); every fetch is charged
        diagnostics: Dict[str, Any] = {"request_charge": 0.0, "activity_id": None}

        def _capture_headers(headers: Mapping[str, Any], _result: Any) -> None:
            headers = headers or {}
            diagnostics["request_charge"] += _as_float(_header(headers, REQUEST_CHARGE_HEADER))
            activity_id = _header(headers, ACTIVITY_ID_HEADER)
            if activity_id:
                diagnostics["activity_id"] = activity_id

        query_kwargs: Dict[str, Any] = {
            "query": spec.sql,
            "response_hook": _capture_headers,
        }
        if spec.parameters:
            query_kwargs["parameters"] = spec.as_cosmos_parameters()
        if options.partition_key is not None:
            query_kwargs["partition_key"] = options.partition_key
        if options.page_size is not None:
            query_kwargs["max_item_count"] = options.page_size

        logger.debug(
            "cosmos_query_executing",
            container=container_name,
            sql=spec.sql,
            parameter_names=[name for name, _ in spec.parameters],
            partition_key=options.partition_key,
            page_size=options.page_size,
            has_continuation=options.continuation_token is not None,
        )

        try:
            pages = container.query_items(**query_kwargs).by_page(options.continuation_token)
            page = await anext(pages, None)
            items = [item async for item in page] if page is not None else []
        except CosmosHttpResponseError as exc:
            raise to_provider_fault(exc) from exc

        return ProviderPage(
            items=items,
            request_charge=diagnostics["request_charge"],
            activity_id=diagnostics["activity_id"] or UNKNOWN_ACTIVITY_ID,
            continuation_token=getattr(pages, "continuation_token", None) or None,
        )


def to_provider_fault(exc: CosmosHttpResponseError) -> ProviderFault:
    headers = getattr(exc, "headers", None) or {}
    retry_after_ms = _header(headers, RETRY_AFTER_MS_HEADER)

    # `str(exc)` and `exc.message` embed the status line and response headers
    message = getattr(exc, "http_error_message", None) or PROVIDER_FAILURE_MESSAGE

    return ProviderFault(
        str(message),
        status_code=getattr(exc, "status_code", None) or None,
        sub_status=getattr(exc, "sub_status", None) or 0,
        activity_id=_header(headers, ACTIVITY_ID_HEADER) or UNKNOWN_ACTIVITY_ID,
        request_charge=_as_float(_header(headers, REQUEST_CHARGE_HEADER)),
        retry_after=timedelta(milliseconds=_as_float(retry_after_ms)) if retry_after_ms else None,
    )


# ------------------------------------------------------------------ #
# Internal helpers
# ------------------------------------------------------------------ #
def _header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """
    Case-insensitive header lookup (SDK header dicts vary in casing).
    """
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if isinstance(key, str) and key.lower() == lowered:
                value = candidate
                break
    return str(value) if value is not None else None


def _as_float(value: Optional[str]) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except ValueError:
        return 0.0
