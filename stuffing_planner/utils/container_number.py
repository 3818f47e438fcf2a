"""Container number normalization and ISO 6346 check-digit validation."""

import re

_ISO6346_PATTERN = re.compile(r"^[A-Z]{4}\d{7}$")
_WHITESPACE = re.compile(r"\s+")


def _build_letter_map() -> dict[str, int]:
    # Letters take values from 10 upwards, skipping multiples of 11.
    values: dict[str, int] = {}
    value = 10
    for letter in "ABCDEFGHIJKLMNOPQRSTUVWXYZ":
        if value % 11 == 0:
            value += 1
        values[letter] = value
        value += 1
    return values


LETTER_MAP: dict[str, int] = _build_letter_map()


def normalize_container_number(value: str | None) -> str:
    """Strip all whitespace and upper-case a container number.

    Args:
        value: Raw container number as typed, may be None.

    Returns:
        Normalized number; empty string for None or blank input.
    """
    if not value:
        return ""
    return _WHITESPACE.sub("", value).upper()


def iso6346_check_digit(owner_and_serial: str) -> int:
    """Compute the check digit for the first 10 characters of a container number."""
    total = 0
    for position, char in enumerate(owner_and_serial[:10]):
        digit = LETTER_MAP[char] if char.isalpha() else int(char)
        total += digit * (2 ** position)
    return total % 11 % 10


def is_valid_iso6346(value: str | None) -> bool:
    """Check format (4 letters + 7 digits) and the ISO 6346 check digit."""
    normalized = normalize_container_number(value)
    if not _ISO6346_PATTERN.match(normalized):
        return False
    return iso6346_check_digit(normalized) == int(normalized[10])
