"""
functions/query/query_translator.py

WHAT THIS FILE IS FOR
---------------------
This module turns a public `QueryRequest` (plus the optional query-string
knobs of the endpoint) into the values the Cosmos executor consumes:

- `QuerySpec`:    SQL text + ordered, "@"-prefixed named parameters
- `QueryOptions`: partition key, page size, continuation token

DEFAULTING RULES
----------------
- Parameter names are normalized: "userId" and "@userId" are equivalent.
- Absent or empty `params` -> zero parameters, SQL unchanged.
- Absent partition key -> unset (cross-partition query). A blank key is a
  real partition-key value and is targeted as-is.
- Page size <= 0 or absent -> unset (provider default).
- Continuation token is opaque and passed through unmodified.

Page size is ONLY a page size. It is never reused as a parallelism or
prefetch hint.

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Parse or validate SQL (malformed SQL surfaces as a provider 400)
- Call Cosmos DB
- Log, or touch HTTP concerns

It performs **pure, deterministic mapping only**.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from schemas.input_schema import QueryRequest

PARAMETER_MARKER = "@"


class QuerySpec(BaseModel):
    """
    Provider query specification, built once per request.
    """

    model_config = ConfigDict(frozen=True)

    sql: str
    parameters: Tuple[Tuple[str, Any], ...] = ()

    def as_cosmos_parameters(self) -> List[Dict[str, Any]]:
        """
        Shape expected by `ContainerProxy.query_items(parameters=...)`.
        """
        return [{"name": name, "value": value} for name, value in self.parameters]


class QueryOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    partition_key: Optional[str] = None
    page_size: Optional[int] = None
    continuation_token: Optional[str] = None


def normalize_parameter_name(name: str) -> str:
    return name if name.startswith(PARAMETER_MARKER) else PARAMETER_MARKER + name


def build_spec(request: QueryRequest) -> QuerySpec:
    """
    Build the provider query specification from the caller's SQL and params.

    Raises:
        ValueError: if `request.sql` is empty or blank.
    """
    if not request.sql or not request.sql.strip():
        raise ValueError("sql must be a non-empty string")

    parameters = tuple(
        (normalize_parameter_name(name), value)
        for name, value in (request.params or {}).items()
    )

    return QuerySpec(sql=request.sql, parameters=parameters)


def build_options(
    *,
    partition_key: Optional[str] = None,
    page_size: Optional[int] = None,
    continuation_token: Optional[str] = None,
) -> QueryOptions:
    return QueryOptions(
        partition_key=partition_key,
        page_size=page_size if page_size is not None and page_size > 0 else None,
        continuation_token=continuation_token or None,
    )
