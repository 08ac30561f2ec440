"""Plate / VIN recognition helpers.

French plates are ``AA-NNN-AA`` (seven alphanumerics, dashes optional).
VINs are seventeen alphanumerics without ``I``, ``O`` or ``Q``.
"""

from __future__ import annotations

import re
from enum import StrEnum

from autodraft.models.responses import IdentifierType

PLATE_RE = re.compile(r"^[A-Z]{2}-?\d{3}-?[A-Z]{2}$")
VIN_RE = re.compile(r"^[A-HJ-NPR-Z0-9]{17}$")
_PLATE_PARTIAL_RE = re.compile(r"^[A-Z]{0,2}-?\d{0,3}-?[A-Z]{0,2}$")
_VIN_CHARS_RE = re.compile(r"^[A-HJ-NPR-Z0-9]+$")
_NON_ALNUM_RE = re.compile(r"[^A-Z0-9]")

PLATE_LENGTH = 7
MIN_DETECT_LENGTH = 3


class DetectedFormat(StrEnum):
    PLATE = "plate"
    VIN = "vin"
    UNKNOWN = "unknown"

    @property
    def identifier_type(self) -> IdentifierType | None:
        if self is DetectedFormat.PLATE:
            return IdentifierType.PLATE
        if self is DetectedFormat.VIN:
            return IdentifierType.VIN
        return None


def _clean(value: str) -> str:
    return _NON_ALNUM_RE.sub("", value.upper())


def detect_format(value: str) -> DetectedFormat:
    """Guess whether a (possibly partial) input is a plate or a VIN.

    Nothing is guessed below three characters.  Anything longer than a
    plate is a VIN candidate; shorter input is a plate when it fits the
    plate shape so far and mixes letters with digits.
    """
    upper = "".join(value.upper().split())
    if len(upper) < MIN_DETECT_LENGTH:
        return DetectedFormat.UNKNOWN

    clean = _clean(upper)
    vin_chars = bool(_VIN_CHARS_RE.match(clean))
    if len(clean) > PLATE_LENGTH and vin_chars:
        return DetectedFormat.VIN
    if _PLATE_PARTIAL_RE.match(upper) and re.search(r"[A-Z]", upper) and re.search(r"\d", upper):
        return DetectedFormat.PLATE
    # does not fit the plate shape at all: only a VIN prefix remains
    if vin_chars and re.search(r"\d", clean) and re.search(r"[A-Z]", clean):
        return DetectedFormat.VIN
    return DetectedFormat.UNKNOWN


def format_plate(value: str) -> str:
    """``ab123cd`` -> ``AB-123-CD``; partial input is formatted as far as it goes."""
    clean = _clean(value)
    if len(clean) <= 2:
        return clean
    if len(clean) <= 5:
        return f"{clean[:2]}-{clean[2:]}"
    return f"{clean[:2]}-{clean[2:5]}-{clean[5:7]}"


def is_valid_identifier(value: str, fmt: DetectedFormat | IdentifierType | str) -> bool:
    """True when *value* is a complete plate or VIN of the given format."""
    upper = re.sub(r"[^A-Z0-9-]", "", value.upper())
    if fmt == DetectedFormat.PLATE:
        return bool(PLATE_RE.match(upper))
    if fmt == DetectedFormat.VIN:
        return bool(VIN_RE.match(upper))
    return False


def normalize_identifier(value: str, identifier_type: IdentifierType | str) -> str:
    """Canonical form sent to the lookup endpoint (``AB-123-CD`` or bare VIN)."""
    if IdentifierType(identifier_type) == IdentifierType.PLATE:
        return format_plate(value)
    return _clean(value)
