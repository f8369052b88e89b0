"""
functions/query/query_service.py

WHAT THIS FILE IS FOR
---------------------
This module composes the query path end to end:

    QueryRequest
      -> build_spec()                  (query_translator.py)
      -> CosmosQueryExecutor.execute() (cosmos_executor.py, awaited here)
      -> from_success / from_failure   (response_normalizer.py)
      -> QueryResponse

ERROR HANDLING RULES
--------------------
- ProviderFault          -> provider error envelope (status-derived code)
- Any other exception    -> UpstreamError / 500 envelope
- Nothing is re-raised: every outcome resolves to a QueryResponse, so
  the HTTP layer never handles a failure from the query path.
- No retries are performed here; 429 surfaces retryAfterMs instead.

All awaiting happens in `execute_query`; the translator and normalizer
it calls stay synchronous and side-effect free.
"""

from __future__ import annotations

from typing import Optional, Protocol

import structlog

from functions.query.query_translator import QueryOptions, QuerySpec, build_spec
from functions.query.response_normalizer import ProviderPage, from_failure, from_success
from schemas.input_schema import QueryRequest
from schemas.output_schema import QueryResponse

logger = structlog.get_logger(__name__)


class QueryExecutor(Protocol):
    async def execute(
        self,
        container_name: str,
        spec: QuerySpec,
        options: QueryOptions,
    ) -> ProviderPage: ...


class CosmosQueryService:
    def __init__(self, executor: QueryExecutor) -> None:
        self.executor = executor

    async def execute_query(
        self,
        container_name: str,
        request: QueryRequest,
        options: Optional[QueryOptions] = None,
    ) -> QueryResponse:
        options = options or QueryOptions()

        try:
            spec = build_spec(request)
            page = await self.executor.execute(container_name, spec, options)
        except Exception as exc:  # noqa: BLE001
            return from_failure(exc)

        logger.info(
            "query_executed",
            container=container_name,
            count=len(page.items),
            ru=page.request_charge,
            activity_id=page.activity_id,
        )
        return from_success(page)
