"""Library configuration for purusdrive."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from purusdrive._constants import (
    DEFAULT_BASE_URL,
    DEFAULT_CONTAINER_ID,
    DEFAULT_ZONE_NAME,
    PREFERENCES_FILE_NAME,
    STORE_FILE_NAME,
)
from purusdrive.exceptions import PurusConfigError


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise PurusConfigError(f"{env_key} must be a number, got {value!r}") from exc


def _env_int(env_key: str, value: str) -> int:
    try:
        return int(value)
    except ValueError as exc:
        raise PurusConfigError(f"{env_key} must be an integer, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Sync and storage configuration.

    Parameters
    ----------
    data_dir : Path
        Directory holding the local store file and the preference file.
    container_id : str
        Identifier of the private cloud container.
    zone_name : str
        Name of the custom record zone all records live in.
    base_url : str
        Base URL of the record web service.
    environment : str
        Container environment (``"development"`` or ``"production"``).
    api_token : str or None
        API token sent as ``ckAPIToken``.  Required for the HTTP service.
    web_auth_token : str or None
        Per-user web auth token sent as ``ckWebAuthToken``.
    page_size : int
        Maximum number of records requested per query page.
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    success_display_delay : float
        Seconds a transition success state stays visible before idling.
    failure_display_delay : float
        Seconds a transition failure state stays visible before idling.
    transition_timeout : float
        Upper bound in seconds for one storage mode transition.  ``0``
        disables the timeout.
    """

    data_dir: Path = dataclasses.field(default_factory=lambda: Path.home() / ".purusdrive")
    container_id: str = DEFAULT_CONTAINER_ID
    zone_name: str = DEFAULT_ZONE_NAME
    base_url: str = DEFAULT_BASE_URL
    environment: str = "production"
    api_token: str | None = None
    web_auth_token: str | None = None
    page_size: int = 200
    request_timeout: float = 30.0
    success_display_delay: float = 1.2
    failure_display_delay: float = 3.0
    transition_timeout: float = 120.0

    def __post_init__(self) -> None:
        if self.page_size <= 0:
            raise PurusConfigError(f"page_size must be positive, got {self.page_size}")
        if self.environment not in {"development", "production"}:
            raise PurusConfigError(f"environment must be 'development' or 'production', got {self.environment!r}")

    @property
    def store_path(self) -> Path:
        return Path(self.data_dir) / STORE_FILE_NAME

    @property
    def preferences_path(self) -> Path:
        return Path(self.data_dir) / PREFERENCES_FILE_NAME

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from ``PURUS_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "PURUS_CONTAINER_ID": "container_id",
            "PURUS_ZONE_NAME": "zone_name",
            "PURUS_BASE_URL": "base_url",
            "PURUS_ENVIRONMENT": "environment",
            "PURUS_API_TOKEN": "api_token",
            "PURUS_WEB_AUTH_TOKEN": "web_auth_token",
        }
        _ENV_FLOAT_MAP = {
            "PURUS_REQUEST_TIMEOUT": "request_timeout",
            "PURUS_SUCCESS_DISPLAY_DELAY": "success_display_delay",
            "PURUS_FAILURE_DISPLAY_DELAY": "failure_display_delay",
            "PURUS_TRANSITION_TIMEOUT": "transition_timeout",
        }

        config_kwargs: dict[str, Any] = {}
        data_dir = env.get("PURUS_DATA_DIR")
        if data_dir:
            config_kwargs["data_dir"] = Path(data_dir).expanduser()

        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        page_size_env = env.get("PURUS_PAGE_SIZE")
        if page_size_env is not None and "page_size" not in overrides:
            config_kwargs["page_size"] = _env_int("PURUS_PAGE_SIZE", page_size_env)

        config_kwargs.update(overrides)
        if "data_dir" in config_kwargs:
            config_kwargs["data_dir"] = Path(config_kwargs["data_dir"])

        return cls(**config_kwargs)
