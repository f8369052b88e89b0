"""
functions/utils/json_naming_converter.py

WHAT THIS FILE IS FOR
---------------------
This module provides a **recursive JSON key normalization utility**
used by the Cosmos Query Sidecar to emit a **stable camelCase response
contract** from snake_case internal models.

It is used exactly once per response, right before the envelope is
returned from api.py:

    {"cosmos": {"status_code": 429, "retry_after_ms": 5000}}
      -> {"cosmos": {"statusCode": 429, "retryAfterMs": 5000}}

PRESERVE-CONTAINER MECHANISM
----------------------------
Query results are caller-owned documents: their keys must come back
exactly as stored in Cosmos DB. Containers listed in
`preserve_container_keys` (default {"results"}) work like this:

- The container key itself is normalized to camelCase
- Its content (dict OR list) is returned verbatim

Example:
    preserve_container_keys = {"results"}

Input:
    {"data": {"continuation_token": "t", "results": [{"user_id": "u1"}]}}

Output:
    {"data": {"continuationToken": "t", "results": [{"user_id": "u1"}]}}

WHAT THIS FILE IS NOT FOR
-------------------------
This module MUST NOT:
- Perform request validation
- Modify values
- Perform I/O or logging

It is a **pure transformation utility**. The input is never mutated.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional


def snake_to_camel(s: str) -> str:
    """
    Convert snake_case string to camelCase.

    - Leaves strings without '_' unchanged
    - Preserves leading/trailing underscores
    """
    if "_" not in s:
        return s

    leading = len(s) - len(s.lstrip("_"))
    trailing = len(s) - len(s.rstrip("_"))
    core = s.strip("_")

    if not core:
        return s  # e.g. "___"

    parts = [p for p in core.split("_") if p]
    camel = parts[0] + "".join(p[:1].upper() + p[1:] for p in parts[1:])

    return ("_" * leading) + camel + ("_" * trailing)


def convert_keys_snake_to_camel(
    obj: Any,
    *,
    preserve_container_keys: Optional[Iterable[str]] = None,
) -> Any:
    """
    Recursively convert dict keys from snake_case to camelCase.

    Args:
        obj:
            Any JSON-like object (dict / list / primitive)
        preserve_container_keys:
            Iterable of keys (snake_case OR camelCase) whose values are
            returned verbatim; only the container key is converted.

    Returns:
        New object with converted keys (input is not mutated)
    """
    preserve = set(preserve_container_keys or [])

    if isinstance(obj, list):
        return [convert_keys_snake_to_camel(x, preserve_container_keys=preserve) for x in obj]

    if isinstance(obj, dict):
        out: dict[str, Any] = {}

        for key, value in obj.items():
            if not isinstance(key, str):
                out[key] = value
                continue

            camel_key = snake_to_camel(key)

            # match both snake_case and camelCase
            preserve_children = key in preserve or camel_key in preserve

            if preserve_children and isinstance(value, (dict, list)):
                out[camel_key] = value
            else:
                out[camel_key] = convert_keys_snake_to_camel(
                    value, preserve_container_keys=preserve
                )

        return out

    return obj
