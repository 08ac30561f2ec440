"""HTTP transport for the draft backend."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from autodraft._constants import USER_AGENT
from autodraft._redact import redact_for_log
from autodraft.config import DraftConfig
from autodraft.exceptions import DraftApiError, DraftTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles/mocks while
    keeping the production implementation (`HttpTransport`) concrete.
    """

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]: ...


def _error_message(body: Any, status: int) -> tuple[str, str]:
    """Extract ``(message, code)`` from a backend error envelope."""
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            message = error.get("message")
            code = error.get("code")
            if isinstance(message, str) and message:
                return message, str(code or "")
    return f"HTTP {status}", ""


class HttpTransport:
    """JSON-over-HTTP transport with bearer auth and error envelope mapping."""

    def __init__(self, config: DraftConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {
            "accept": "application/json",
            "accept-language": self._config.language,
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if self._config.api_token:
            headers["authorization"] = f"Bearer {self._config.api_token}"
        return headers

    async def post_json(self, endpoint: str, payload: Mapping[str, Any]) -> dict[str, Any]:
        """POST *payload* as JSON and return the decoded JSON object.

        Raises
        ------
        DraftTransportError
            Network failure, timeout, or a body that is not a JSON object.
        DraftApiError
            Non-2xx status; the message is the backend's ``error.message``.
        """
        url = f"{self._config.base_url}{endpoint}"
        body = json.dumps(payload, separators=(",", ":"))

        _logger.debug("POST %s", url)
        if self._config.api_trace_enabled:
            _logger.debug("POST %s request=%s", endpoint, redact_for_log(dict(payload)))

        try:
            async with self._http.post(url, data=body, headers=self._headers(), timeout=self._timeout) as resp:
                status = resp.status
                text = await resp.text()
        except aiohttp.ClientError as exc:
            raise DraftTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc
        except asyncio.TimeoutError as exc:
            raise DraftTransportError(
                f"Request to {endpoint} timed out after {self._config.request_timeout}s",
                endpoint=endpoint,
            ) from exc

        try:
            decoded: Any = json.loads(text) if text.strip() else {}
        except json.JSONDecodeError as exc:
            if status >= 400:
                raise DraftApiError(
                    f"HTTP {status}",
                    endpoint=endpoint,
                    status_code=status,
                ) from exc
            raise DraftTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
            ) from exc

        if self._config.api_trace_enabled:
            _logger.debug("POST %s status=%d response=%s", endpoint, status, redact_for_log(decoded))

        if status >= 400:
            message, code = _error_message(decoded, status)
            raise DraftApiError(message, code=code, endpoint=endpoint, status_code=status)

        if not isinstance(decoded, dict):
            raise DraftTransportError(
                f"Expected a JSON object from {endpoint}, got {type(decoded).__name__}",
                status_code=status,
                endpoint=endpoint,
            )
        return decoded
