"""Client configuration for autodraft."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from autodraft._constants import (
    AUTO_SAVE_INTERVAL_SECONDS,
    BASE_URL,
    DEBOUNCE_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from autodraft.exceptions import DraftConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_float(env_key: str, value: str) -> float:
    try:
        return float(value)
    except ValueError as exc:
        raise DraftConfigError(f"{env_key} must be a number, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class DraftConfig:
    """Client configuration.

    Parameters
    ----------
    base_url : str
        Backend base URL. Endpoint paths are appended verbatim.
    api_token : str or None
        Bearer token sent in the ``Authorization`` header.  Obtaining it is
        the caller's concern; the client only forwards it.
    language : str
        Language code sent as ``Accept-Language`` (backend error messages
        are localized).
    request_timeout : float
        Total timeout in seconds for a single HTTP request.
    debounce_seconds : float
        Quiet period after the last edit of a field before it is synced.
    auto_save_interval : float
        Period of the whole-draft auto-save loop.  ``0`` disables it.
    api_trace_enabled : bool
        Log redacted request/response bodies at DEBUG level.
    """

    base_url: str = BASE_URL
    api_token: str | None = None
    language: str = "fr"
    request_timeout: float = REQUEST_TIMEOUT_SECONDS
    debounce_seconds: float = DEBOUNCE_SECONDS
    auto_save_interval: float = AUTO_SAVE_INTERVAL_SECONDS
    api_trace_enabled: bool = False

    def __post_init__(self) -> None:
        if self.debounce_seconds < 0:
            raise DraftConfigError("debounce_seconds must be >= 0")
        if self.auto_save_interval < 0:
            raise DraftConfigError("auto_save_interval must be >= 0")
        if self.request_timeout <= 0:
            raise DraftConfigError("request_timeout must be > 0")

    @classmethod
    def from_env(cls, **overrides: Any) -> DraftConfig:
        """Create configuration from ``AUTODRAFT_*`` environment variables.

        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        DraftConfig
            Populated configuration.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "AUTODRAFT_BASE_URL": "base_url",
            "AUTODRAFT_API_TOKEN": "api_token",
            "AUTODRAFT_LANGUAGE": "language",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "AUTODRAFT_REQUEST_TIMEOUT": "request_timeout",
            "AUTODRAFT_DEBOUNCE_SECONDS": "debounce_seconds",
            "AUTODRAFT_AUTO_SAVE_INTERVAL": "auto_save_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = _env_float(env_key, val)

        if "api_trace_enabled" not in overrides:
            config_kwargs["api_trace_enabled"] = _env_bool(
                env.get("AUTODRAFT_API_TRACE_ENABLED"),
                False,
            )

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
