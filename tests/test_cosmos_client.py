# tests/test_cosmos_client.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import pytest

import functions.utils.cosmos_client as cc_mod


@dataclass
class _FakeSettings:
    cosmos_endpoint: str = "https://acct.documents.azure.com:443/"
    cosmos_database: str = "appdb"
    cosmos_key: Optional[str] = "secret-key"
    auth_mode: str = "KEY"
    request_timeout_seconds: float = 30.0


def test_key_mode_returns_account_key() -> None:
    assert cc_mod.build_credential(_FakeSettings()) == "secret-key"  # type: ignore[arg-type]


def test_key_mode_without_key_is_rejected() -> None:
    with pytest.raises(ValueError):
        cc_mod.build_credential(_FakeSettings(cosmos_key=None))  # type: ignore[arg-type]


def test_unknown_auth_mode_is_rejected() -> None:
    with pytest.raises(ValueError) as info:
        cc_mod.build_credential(_FakeSettings(auth_mode="CERTIFICATE"))  # type: ignore[arg-type]
    assert "CERTIFICATE" in str(info.value)


def test_default_credential_mode_uses_azure_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    sentinel = object()
    monkeypatch.setattr(cc_mod, "DefaultAzureCredential", lambda: sentinel)

    credential = cc_mod.build_credential(
        _FakeSettings(auth_mode="default_azure_credential", cosmos_key=None)  # type: ignore[arg-type]
    )

    assert credential is sentinel


def test_build_cosmos_client_passes_endpoint_credential_and_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: Dict[str, Any] = {}

    def _fake_client(**kwargs: Any) -> str:
        captured.update(kwargs)
        return "client"

    monkeypatch.setattr(cc_mod, "CosmosClient", _fake_client)

    client = cc_mod.build_cosmos_client(_FakeSettings(), "secret-key")  # type: ignore[arg-type]

    assert client == "client"
    assert captured == {
        "url": "https://acct.documents.azure.com:443/",
        "credential": "secret-key",
        "connection_timeout": 30,
    }
