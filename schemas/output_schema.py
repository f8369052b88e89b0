# -------------------------------------------------------------------
# schemas/output_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **response envelope** returned by the
# Cosmos Query Sidecar API, for both successful and failed queries.
#
# NAMING CONVENTION (IMPORTANT)
# -----------------------------
# All fields in this file use **snake_case** by design.
#
# At the API boundary (in api.py), response objects are converted to
# **camelCase JSON** using:
#     convert_keys_snake_to_camel()
#
# Documents inside `results` are free-form and are preserved verbatim
# (see Settings.preserve_container_keys).
#
# ENVELOPE CONTRACT
# -----------------
# - ok=True  -> `data` present, `error` absent
# - ok=False -> `error` present, `data` absent
# - `cosmos` carries RU / status / activity diagnostics on both paths
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT:
# - Perform JSON key conversion
# - Decide error codes or HTTP status codes
# - Contain FastAPI logic
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CosmosMetadata(BaseModel):
    """
    Provider diagnostics for a single query call.
    """

    model_config = ConfigDict(frozen=True)

    ru: float = Field(0.0, description="Request Units consumed by the operation")
    status_code: int = Field(..., description="HTTP status code reported by Cosmos DB")
    activity_id: str = Field("N/A", description="Cosmos DB activity id for tracing")
    sub_status: int = Field(0, description="Cosmos DB sub-status code")

    # Present on throttling only
    retry_after_ms: Optional[int] = Field(None, description="Retry-after in milliseconds")


class ErrorInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    details: Optional[Dict[str, Any]] = None


class QueryData(BaseModel):
    """
    One page of query results.
    """

    model_config = ConfigDict(frozen=True)

    count: int = Field(..., ge=0)
    results: List[Any] = Field(default_factory=list)

    # Absent on the final page (never an empty string)
    continuation_token: Optional[str] = None


class QueryResponse(BaseModel):
    """
    Standard response envelope for the sidecar.

    NOTE:
    - This schema is INTERNAL and uses snake_case.
    - Keys are converted to camelCase at the API boundary.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ok: bool
    data: Optional[QueryData] = None
    error: Optional[ErrorInfo] = None
    cosmos: Optional[CosmosMetadata] = None

    @model_validator(mode="after")
    def _exactly_one_of_data_or_error(self) -> "QueryResponse":
        if self.ok and (self.data is None or self.error is not None):
            raise ValueError("ok=True requires data and forbids error")
        if not self.ok and (self.error is None or self.data is not None):
            raise ValueError("ok=False requires error and forbids data")
        return self
