"""
api.py

WHAT THIS FILE IS FOR
---------------------
This module defines the FastAPI application entrypoint for the
Cosmos Query Sidecar.

It is responsible for:
- Creating the FastAPI app instance (title/version/description/OpenAPI)
- Owning the shared Cosmos client lifecycle (lifespan: open once, close once)
- Registering middleware for:
    - Request id echoing (X-Request-Id, only when the caller sent one)
- Converting request validation failures into the standard envelope
- Exposing HTTP endpoints:
    - GET /health and /healthz
    - POST /cosmos/v1/query/{container}

REQUEST/RESPONSE CONTRACT RULES
-------------------------------
- Every query response body is a QueryResponse envelope:
    {ok, data | error, cosmos}
  with null/absent fields omitted.
- Response payload is camelCase; documents under `results` are returned
  verbatim (Settings.preserve_container_keys).
- HTTP status and X-Cosmos-* headers are derived from the envelope by
  functions/query/status_mapper.py.
- X-Timeout-Ms is accepted and logged only; timeouts belong to the SDK.

DESIGN INTENT
-------------
This file contains ONLY the HTTP layer:
- routing
- middleware
- exception handling
- response formatting / normalization

Query translation, execution and normalization live in:
- functions/query/*
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
from fastapi import FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from functions.query.cosmos_executor import CosmosQueryExecutor
from functions.query.query_service import CosmosQueryService
from functions.query.query_translator import build_options
from functions.query.response_normalizer import from_validation_error
from functions.query.status_mapper import build_diagnostic_headers, determine_http_status
from functions.utils.json_naming_converter import convert_keys_snake_to_camel
from functions.utils.logging_config import configure_logging
from functions.utils.settings import get_settings
from schemas.input_schema import QueryRequest
from schemas.output_schema import QueryResponse

settings = get_settings()
configure_logging(settings.log_level)

logger = structlog.get_logger(__name__)

executor = CosmosQueryExecutor(settings)
service = CosmosQueryService(executor)

REQUEST_ID_HEADER = "X-Request-Id"


@asynccontextmanager
async def lifespan(_app: FastAPI):
    await executor.open()
    try:
        yield
    finally:
        await executor.close()


app = FastAPI(
    title="Cosmos DB Query Sidecar",
    version="1.0.0",
    description=(
        "Executes parameterized SQL queries against Azure Cosmos DB containers "
        "and returns results with RU / activity-id diagnostics in a uniform envelope."
    ),
    lifespan=lifespan,
)

QUERY_RESPONSES: Dict[int | str, Dict[str, Any]] = {
    200: {"description": "Query executed successfully"},
    400: {"description": "Bad request - invalid query syntax or parameters"},
    404: {"description": "Container not found"},
    408: {"description": "Request timeout"},
    429: {"description": "Too many requests - rate limited by Cosmos DB"},
    500: {"description": "Internal server error"},
}


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _envelope_response(response: QueryResponse) -> JSONResponse:
    payload = convert_keys_snake_to_camel(
        response.model_dump(exclude_none=True),
        preserve_container_keys=settings.preserve_container_keys,
    )
    return JSONResponse(
        status_code=determine_http_status(response),
        content=payload,
        headers=build_diagnostic_headers(response),
    )


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request_id = request.headers.get(REQUEST_ID_HEADER)

    structlog.contextvars.clear_contextvars()
    if request_id:
        structlog.contextvars.bind_contextvars(request_id=request_id)

    response = await call_next(request)

    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response


# -------------------------------------------------------------------
# Exception handlers
# -------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details: Dict[str, Any] = {}
    for err in exc.errors():
        field = ".".join(str(x) for x in err.get("loc", []) if x != "body") or "body"
        details[field] = err.get("msg")

    logger.info(
        "request_validation_failed",
        path=request.url.path,
        error_count=len(details),
    )

    return _envelope_response(from_validation_error("Validation failed", details))


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------
@app.get("/healthz")
@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": settings.service_name,
        "environment": settings.environment,
    }


@app.post(
    "/cosmos/v1/query/{container}",
    response_model=QueryResponse,
    responses=QUERY_RESPONSES,
    summary="Execute a Cosmos DB query",
    description=(
        "Executes a SQL query against a Cosmos DB container with optional "
        "partition key and pagination support."
    ),
    tags=["Cosmos DB Query"],
)
async def query_container(
    container: str,
    payload: QueryRequest,
    pk: Optional[str] = Query(None, description="Partition key value for a single-partition query"),
    max_item_count: Optional[int] = Query(
        None,
        alias="maxItemCount",
        description="Maximum number of items to return per page",
    ),
    ct: Optional[str] = Query(None, description="Continuation token from a previous page"),
    x_request_id: Optional[str] = Header(None, description="Request id, echoed back"),
    x_timeout_ms: Optional[int] = Header(None, description="Timeout hint in ms (not enforced)"),
) -> JSONResponse:
    logger.info(
        "query_request_received",
        container=container,
        request_id=x_request_id,
        timeout_ms=x_timeout_ms,
    )
    logger.debug(
        "query_request_detail",
        sql=payload.sql,
        parameter_names=sorted((payload.params or {}).keys()),
        partition_key=pk,
        max_item_count=max_item_count,
    )

    options = build_options(
        partition_key=pk,
        page_size=max_item_count,
        continuation_token=ct,
    )
    response = await service.execute_query(container, payload, options)

    return _envelope_response(response)
