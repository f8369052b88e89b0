"""
functions/query/response_normalizer.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single canonical rule set* for turning the
outcome of a Cosmos query into the public `QueryResponse` envelope.

It is responsible for:
- Mapping a successful provider page into `data` + `cosmos`
- Mapping a provider fault (status, sub-status, activity id, RU,
  retry-after) into `error` + `cosmos`
- Mapping any unrelated failure into `UpstreamError` with
  synthesized diagnostics
- Deriving the error taxonomy from the provider status code

ERROR TAXONOMY
--------------
Derived ONLY from the provider status code, never from message text:

    400 -> BadRequest
    404 -> NotFound
    429 -> Throttled
    408 -> Timeout
    *   -> UpstreamError

SYNTHESIZED DIAGNOSTICS
-----------------------
When a failure happens before any provider call was made (translator
error, client not initialized, network failure) `cosmos` is synthesized:

    {ru: 0.0, statusCode: 500, activityId: "N/A", subStatus: 0}

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Execute queries or await anything
- Decide HTTP status codes or headers (see status_mapper.py)
- Re-raise faults

The mapping is identical whether the query ran synchronously or
asynchronously: it only ever sees the already-settled result.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Dict, List, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from schemas.output_schema import CosmosMetadata, ErrorInfo, QueryData, QueryResponse

logger = structlog.get_logger(__name__)

FALLBACK_ERROR_MESSAGE = "Internal server error"
UNKNOWN_ACTIVITY_ID = "N/A"

ERROR_CODES_BY_STATUS: Dict[int, str] = {
    400: "BadRequest",
    404: "NotFound",
    429: "Throttled",
    408: "Timeout",
}
UPSTREAM_ERROR = "UpstreamError"
BAD_REQUEST = "BadRequest"


class ProviderPage(BaseModel):
    """
    One page returned by the Cosmos executor.
    """

    model_config = ConfigDict(frozen=True)

    items: List[Any] = Field(default_factory=list)
    request_charge: float = 0.0
    activity_id: str = UNKNOWN_ACTIVITY_ID
    continuation_token: Optional[str] = None


class ProviderFault(Exception):
    """
    A failure reported by Cosmos DB itself.

    Raised by the executor at the collaborator seam so that the
    normalizer never depends on SDK exception types.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        sub_status: int = 0,
        activity_id: str = UNKNOWN_ACTIVITY_ID,
        request_charge: float = 0.0,
        retry_after: Optional[timedelta] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.sub_status = sub_status
        self.activity_id = activity_id
        self.request_charge = request_charge
        self.retry_after = retry_after

    @property
    def retry_after_ms(self) -> Optional[int]:
        if self.retry_after is None:
            return None
        return self.retry_after // timedelta(milliseconds=1)


def determine_error_code(status_code: Optional[int]) -> str:
    if status_code is None:
        return UPSTREAM_ERROR
    return ERROR_CODES_BY_STATUS.get(status_code, UPSTREAM_ERROR)


def from_success(page: ProviderPage) -> QueryResponse:
    results: List[Any] = list(page.items)

    logger.debug(
        "query_page_normalized",
        count=len(results),
        ru=page.request_charge,
        activity_id=page.activity_id,
        has_more=bool(page.continuation_token),
    )

    return QueryResponse(
        ok=True,
        data=QueryData(
            count=len(results),
            results=results,
            continuation_token=page.continuation_token or None,
        ),
        cosmos=CosmosMetadata(
            ru=page.request_charge,
            status_code=200,
            activity_id=page.activity_id,
            sub_status=0,
        ),
    )


def from_failure(fault: BaseException) -> QueryResponse:
    if isinstance(fault, ProviderFault):
        return _from_provider_fault(fault)
    return _from_unrelated_failure(fault)


def from_validation_error(
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> QueryResponse:
    """
    Envelope for requests rejected before any provider call (bad body,
    bad query parameters). Diagnostics are synthesized with status 400.
    """
    return QueryResponse(
        ok=False,
        error=ErrorInfo(code=BAD_REQUEST, message=message, details=details or None),
        cosmos=_synthesized_metadata(status_code=400),
    )


def _from_provider_fault(fault: ProviderFault) -> QueryResponse:
    retry_after_ms = fault.retry_after_ms

    logger.error(
        "cosmos_query_failed",
        status_code=fault.status_code,
        sub_status=fault.sub_status,
        activity_id=fault.activity_id,
        ru=fault.request_charge,
        retry_after_ms=retry_after_ms,
        error=fault.message,
    )

    details: Dict[str, Any] = {
        "activity_id": fault.activity_id,
        "sub_status": fault.sub_status,
    }
    if retry_after_ms is not None:
        details["retry_after_ms"] = retry_after_ms

    return QueryResponse(
        ok=False,
        error=ErrorInfo(
            code=determine_error_code(fault.status_code),
            message=fault.message,
            details=details,
        ),
        cosmos=CosmosMetadata(
            ru=fault.request_charge,
            # a fault without a status is recorded as a server error
            status_code=fault.status_code if fault.status_code is not None else 500,
            activity_id=fault.activity_id,
            sub_status=fault.sub_status,
            retry_after_ms=retry_after_ms,
        ),
    )


def _from_unrelated_failure(exc: BaseException) -> QueryResponse:
    message = str(exc) or FALLBACK_ERROR_MESSAGE

    logger.error(
        "query_unexpected_error",
        error_type=type(exc).__name__,
        error=message,
        exc_info=exc,
    )

    return QueryResponse(
        ok=False,
        error=ErrorInfo(code=UPSTREAM_ERROR, message=message),
        cosmos=_synthesized_metadata(status_code=500),
    )


def _synthesized_metadata(*, status_code: int) -> CosmosMetadata:
    return CosmosMetadata(
        ru=0.0,
        status_code=status_code,
        activity_id=UNKNOWN_ACTIVITY_ID,
        sub_status=0,
    )
