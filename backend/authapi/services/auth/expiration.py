"""Compact duration strings (``"15m"``, ``"7d"``) used for token lifetimes."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Final

from authapi.services._shared.errors import BadRequestError

_UNIT_MILLIS: Final[dict[str, int]] = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
    "d": 24 * 60 * 60 * 1000,
}

# One run of ASCII digits followed by exactly one unit character, nothing else
_DURATION_RE: Final[re.Pattern[str]] = re.compile(r"(?P<value>[0-9]+)(?P<unit>[a-zA-Z])")

INVALID_EXPIRATION_MESSAGE = "Invalid token expiration format"


def parse_expiration(expiration: str) -> int:
    """
    Convert a duration such as ``"30m"`` into milliseconds.

    :param expiration: ``<integer><unit>`` with unit one of ``s``, ``m``, ``h``, ``d``.
    :returns: Duration in milliseconds.
    :raises BadRequestError: On an unknown unit or any other shape
        (fractions, signs, whitespace, compound values, missing unit).
    """
    if not isinstance(expiration, str):
        raise BadRequestError(INVALID_EXPIRATION_MESSAGE)
    match = _DURATION_RE.fullmatch(expiration)
    if match is None:
        raise BadRequestError(INVALID_EXPIRATION_MESSAGE)
    factor = _UNIT_MILLIS.get(match["unit"])
    if factor is None:
        raise BadRequestError(INVALID_EXPIRATION_MESSAGE)
    return int(match["value"]) * factor


def expiration_to_timedelta(expiration: str) -> timedelta:
    """Same as :func:`parse_expiration` but returns a :class:`~datetime.timedelta`."""
    return timedelta(milliseconds=parse_expiration(expiration))
