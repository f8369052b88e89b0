# tests/live_api_smoke_tests.py
"""
Live smoke tests for a deployed Cosmos Query Sidecar.

⚠️ REQUIREMENTS
- The sidecar must be running and connected to a real Cosmos DB account
  (or the Cosmos DB emulator).
- A container with at least a few documents must exist.

These tests make REAL HTTP calls. They are intentionally NOT mocked and
NOT meant for CI (the filename is not collected by pytest by default).

WHAT IT DOES
- GET /health
- POST /cosmos/v1/query/{container} with a small page size
- Follows continuationToken across pages and checks the envelope contract
- Sends an invalid SQL statement and expects a 400 BadRequest envelope

RECOMMENDED USAGE
- Run as a script (best):
    python tests/live_api_smoke_tests.py

- Or run via pytest explicitly:
    pytest -q tests/live_api_smoke_tests.py -s

CONFIG
    export COSMOS_SIDECAR_BASE_URL="http://localhost:8000"
    export COSMOS_SIDECAR_SMOKE_CONTAINER="users"
"""

from __future__ import annotations

import json
import os
import sys
import uuid
from typing import Any, Dict, List, Optional

import httpx


# ---------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------
BASE_URL = os.getenv("COSMOS_SIDECAR_BASE_URL", "http://localhost:8000").rstrip("/")
CONTAINER = os.getenv("COSMOS_SIDECAR_SMOKE_CONTAINER", "users")
PAGE_SIZE = int(os.getenv("COSMOS_SIDECAR_SMOKE_PAGE_SIZE", "2"))
MAX_PAGES = 5

REQUEST_ID_HEADER = "X-Request-Id"
DIAGNOSTIC_HEADERS = ("X-Cosmos-RU", "X-Cosmos-Activity-Id", "X-Cosmos-SubStatus")


def pretty(resp: httpx.Response) -> None:
    print(f"\nSTATUS: {resp.status_code}")
    print("HEADERS:")
    for k, v in resp.headers.items():
        if k.lower().startswith("x-"):
            print(f"  {k}: {v}")
    try:
        print("BODY:")
        print(json.dumps(resp.json(), indent=2, ensure_ascii=False))
    except Exception:
        print(resp.text)


def _post_query(
    sql: str,
    *,
    params: Optional[Dict[str, Any]] = None,
    continuation_token: Optional[str] = None,
    request_id: Optional[str] = None,
) -> httpx.Response:
    query: Dict[str, Any] = {"maxItemCount": PAGE_SIZE}
    if continuation_token:
        query["ct"] = continuation_token

    headers = {"Content-Type": "application/json"}
    if request_id:
        headers[REQUEST_ID_HEADER] = request_id

    return httpx.post(
        f"{BASE_URL}/cosmos/v1/query/{CONTAINER}",
        params=query,
        headers=headers,
        json={"sql": sql, "params": params or {}},
        timeout=60,
    )


# ---------------------------------------------------------------------
# Contract checks
# ---------------------------------------------------------------------
def _assert_envelope(resp: httpx.Response) -> Dict[str, Any]:
    body = resp.json()
    assert isinstance(body.get("ok"), bool), "missing ok flag"
    assert ("data" in body) == body["ok"], "data must be present iff ok"
    assert ("error" in body) == (not body["ok"]), "error must be present iff not ok"
    assert isinstance(body.get("cosmos"), dict), "missing cosmos diagnostics"

    for header in DIAGNOSTIC_HEADERS:
        assert resp.headers.get(header) is not None, f"missing {header} header"

    return body


# ---------------------------------------------------------------------
# 1) Health check
# ---------------------------------------------------------------------
def test_health() -> None:
    print("\n=== TEST 1: GET /health ===")
    resp = httpx.get(f"{BASE_URL}/health", timeout=10)
    pretty(resp)

    assert resp.status_code == 200
    assert resp.json().get("status") == "ok"


# ---------------------------------------------------------------------
# 2) Paging through a container
# ---------------------------------------------------------------------
def test_paging_follows_continuation_tokens() -> None:
    print(f"\n=== TEST 2: page through {CONTAINER} (maxItemCount={PAGE_SIZE}) ===")

    token: Optional[str] = None
    seen: List[Any] = []

    for page_no in range(1, MAX_PAGES + 1):
        request_id = f"smoke-{uuid.uuid4().hex[:8]}"
        resp = _post_query("SELECT * FROM c", continuation_token=token, request_id=request_id)
        pretty(resp)

        assert resp.status_code == 200, f"page {page_no}: unexpected status {resp.status_code}"
        assert resp.headers.get(REQUEST_ID_HEADER) == request_id, "X-Request-Id not echoed"

        body = _assert_envelope(resp)
        data = body["data"]
        assert data["count"] == len(data["results"])
        assert data["count"] <= PAGE_SIZE
        seen.extend(data["results"])

        token = data.get("continuationToken")
        if token is None:
            print(f"final page reached after {page_no} page(s)")
            break
        assert token != "", "continuationToken must be absent, not empty"

    print(f"documents seen: {len(seen)}")


# ---------------------------------------------------------------------
# 3) Invalid SQL surfaces as a provider 400
# ---------------------------------------------------------------------
def test_invalid_sql_is_bad_request() -> None:
    print("\n=== TEST 3: invalid SQL ===")
    resp = _post_query("SELEC * FORM c")
    pretty(resp)

    assert resp.status_code == 400
    body = _assert_envelope(resp)
    assert body["error"]["code"] == "BadRequest"
    assert body["cosmos"]["activityId"] != "N/A", "expected provider diagnostics"


# ---------------------------------------------------------------------
# Entry point (run as script)
# ---------------------------------------------------------------------
if __name__ == "__main__":
    try:
        test_health()
        test_paging_follows_continuation_tokens()
        test_invalid_sql_is_bad_request()
    except AssertionError:
        print("\nTEST FAILED")
        raise
    except Exception as e:
        print("\nERROR:", e)
        sys.exit(1)

    print("\nALL LIVE SMOKE TESTS PASSED ✅")
