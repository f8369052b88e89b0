# -------------------------------------------------------------------
# schemas/input_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **public request schema** for the
# Cosmos Query Sidecar API.
#
# The request body carries a parameterized Cosmos SQL query:
#
#   {
#     "sql": "SELECT * FROM c WHERE c.userId = @userId",
#     "params": {"userId": "u-001"}
#   }
#
# Parameter names may be sent with or without the leading "@";
# the query translator normalizes them before execution.
#
# WHAT THIS FILE IS NOT FOR
# ------------------------
# This module does NOT:
# - Parse or validate SQL (the provider does that at execution time)
# - Build the provider query specification
# - Handle API routing or HTTP concerns
#
# Any breaking change here is a **public API change**.
# -------------------------------------------------------------------

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """
    Request payload for a Cosmos SQL query.

    Immutable once received.
    """

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "sql": "SELECT * FROM c WHERE c.userId = @userId",
                "params": {"userId": "u-001"},
            }
        },
    )

    sql: str = Field(
        ...,
        min_length=1,
        description="Cosmos SQL query with named placeholders (e.g. @userId)",
    )

    params: Optional[Dict[str, Any]] = Field(
        None,
        description="Parameter name -> value. The leading '@' is optional.",
    )
