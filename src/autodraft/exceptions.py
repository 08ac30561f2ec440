"""Custom exception hierarchy for autodraft."""

from __future__ import annotations


class DraftError(Exception):
    """Base exception for all autodraft errors."""


class DraftConfigError(DraftError):
    """Invalid or missing configuration."""


class DraftTransportError(DraftError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class DraftApiError(DraftError):
    """Backend answered with an error (non-2xx status or error envelope).

    ``str(exc)`` is the backend's human-readable message when it sent one.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class DraftPayloadError(DraftApiError):
    """Response received but an encoded sub-payload failed to parse.

    The backend nests lists and maps as JSON strings (``fields``,
    ``sources``, ``listing``, ...).  Any of those failing ``json.loads`` or
    model validation raises this error.
    """


class DraftSaveError(DraftApiError):
    """``saveDraft`` completed but reported ``success: false``."""
