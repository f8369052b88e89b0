"""
functions/query/status_mapper.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single canonical rule* for mapping a
`QueryResponse` envelope onto the externally visible HTTP response:
the status code and the Cosmos diagnostic headers.

PUBLIC CONTRACT RULE
--------------------
- ok=True                      -> 200
- ok=False, cosmos.statusCode  -> 400 / 404 / 408 / 429 pass through
- anything else                -> 500

DIAGNOSTIC HEADERS
------------------
Emitted whenever `cosmos` is present:

    X-Cosmos-RU
    X-Cosmos-Activity-Id
    X-Cosmos-SubStatus
    X-Cosmos-Retry-After-Ms   (only when retry_after_ms is set)

X-Request-Id echoing is handled by middleware in api.py.

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Inspect error messages
- Build or modify envelopes
- Log, raise, or handle exceptions

It performs **pure, deterministic mapping only**.
"""

from __future__ import annotations

from typing import Dict

from schemas.output_schema import QueryResponse

RU_HEADER = "X-Cosmos-RU"
ACTIVITY_ID_HEADER = "X-Cosmos-Activity-Id"
SUB_STATUS_HEADER = "X-Cosmos-SubStatus"
RETRY_AFTER_HEADER = "X-Cosmos-Retry-After-Ms"

PASSTHROUGH_STATUSES = frozenset({400, 404, 408, 429})


def determine_http_status(response: QueryResponse) -> int:
    if response.ok:
        return 200
    if response.cosmos is not None and response.cosmos.status_code in PASSTHROUGH_STATUSES:
        return response.cosmos.status_code
    return 500


def build_diagnostic_headers(response: QueryResponse) -> Dict[str, str]:
    cosmos = response.cosmos
    if cosmos is None:
        return {}

    headers = {
        RU_HEADER: str(cosmos.ru),
        ACTIVITY_ID_HEADER: cosmos.activity_id,
        SUB_STATUS_HEADER: str(cosmos.sub_status),
    }
    if cosmos.retry_after_ms is not None:
        headers[RETRY_AFTER_HEADER] = str(cosmos.retry_after_ms)
    return headers
