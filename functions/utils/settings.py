"""
functions/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module defines the *single source of truth* for runtime configuration
of the Cosmos Query Sidecar.

It is responsible for:
- Defining all supported configuration fields (via Pydantic BaseSettings)
- Loading default values from parameters/parameters.yaml
- Overriding defaults with environment variables (COSMOS_SIDECAR_*)
- Validating required settings (Cosmos endpoint and database)
- Exposing a cached, fully-validated Settings object to the application

LOAD & PRECEDENCE MODEL
-----------------------
Configuration is loaded in the following order (last wins):

1) YAML defaults from:
       parameters/parameters.yaml
2) Environment variables:
       COSMOS_SIDECAR_*

Secrets (cosmos_key) should only ever come from the environment.

WHAT THIS FILE IS NOT FOR
-------------------------
This module is NOT responsible for:
- Building the Cosmos client (see cosmos_client.py)
- Request handling
- Query translation or response normalization

DESIGN INTENT
-------------
- All runtime-configurable behavior MUST be declared here
- Any missing required setting should fail fast at startup
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Literal, Optional, Set

import structlog
import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"

REQUIRED_FIELDS = ("cosmos_endpoint", "cosmos_database")


class Settings(BaseSettings):
    """
    Runtime settings for the Cosmos Query Sidecar.

    Load order / precedence:
        1) YAML defaults (parameters/parameters.yaml)
        2) Environment variables (COSMOS_SIDECAR_*), overriding YAML
    """

    model_config = SettingsConfigDict(
        env_prefix="COSMOS_SIDECAR_",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "cosmos_query_sidecar"
    environment: str = "local"
    log_level: str = "INFO"

    # Cosmos account
    # Optional at the model level to allow partial env loading;
    # enforced explicitly in get_settings().
    cosmos_endpoint: Optional[str] = None
    cosmos_database: Optional[str] = None
    cosmos_key: Optional[str] = Field(default=None, repr=False)

    auth_mode: Literal["KEY", "DEFAULT_AZURE_CREDENTIAL"] = Field(
        default="KEY",
        description="KEY uses cosmos_key; DEFAULT_AZURE_CREDENTIAL uses azure-identity.",
    )

    # Passed to the SDK transport; the sidecar itself never enforces timeouts
    request_timeout_seconds: float = 60.0

    # Response JSON normalization
    preserve_container_keys: Set[str] = Field(
        default_factory=lambda: {"results"},
        description=(
            "Container keys whose inner content must be preserved verbatim "
            "(not camelCased) during response normalization."
        ),
    )


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """
    Load base configuration from parameters/parameters.yaml.
    """
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            logger.warning(
                "parameters_yaml_not_dict",
                path=str(PARAMETERS_PATH),
                type=type(data).__name__,
            )
            return {}
        logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
        return data
    except Exception as exc:  # noqa: BLE001
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached (singleton per process). Any code needing configuration
    should call this function, not instantiate Settings() directly.
    """
    # 1) YAML defaults
    yaml_data = _load_yaml_parameters()

    # 2) env overrides (partial)
    try:
        env_settings = Settings()
        env_data = env_settings.model_dump(exclude_unset=True)
        logger.info("settings_loaded_env_only_partial", fields=list(env_data.keys()))
    except ValidationError as exc:
        logger.warning("settings_env_validation_error", errors=exc.errors())
        env_data = {}

    # 3) merge
    merged: Dict[str, Any] = {**yaml_data, **env_data}

    # 4) enforce required Cosmos coordinates
    missing = [name for name in REQUIRED_FIELDS if not merged.get(name)]
    if missing:
        logger.error("settings_missing_required", missing=missing, yaml_path=str(PARAMETERS_PATH))
        raise RuntimeError(
            f"Missing required settings: {', '.join(missing)}. "
            "Set them either in environment variables (COSMOS_SIDECAR_*) "
            f"or in {PARAMETERS_PATH}."
        )

    # 5) final validation
    settings = Settings.model_validate(merged)

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        service_name=settings.service_name,
        cosmos_endpoint=settings.cosmos_endpoint,
        cosmos_database=settings.cosmos_database,
        auth_mode=settings.auth_mode,
        has_cosmos_key=bool(settings.cosmos_key),
        request_timeout_seconds=settings.request_timeout_seconds,
        preserve_container_keys=sorted(settings.preserve_container_keys),
    )

    return settings
