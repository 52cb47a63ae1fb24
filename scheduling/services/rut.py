"""Chilean RUT (national id) validation."""
from __future__ import annotations

import re

RUT_PATTERN = re.compile(r'(\d{7,})-([\dKk])', re.ASCII)
MIN_RUT_NUMBER = 1_000_000


def check_digit(number: int) -> str:
    """Modulo-11 check digit with weights 2..7 applied right to left."""
    total = 0
    for position, digit in enumerate(reversed(str(number))):
        total += int(digit) * (2 + position % 6)
    raw = 11 - total % 11
    if raw == 11:
        return '0'
    if raw == 10:
        return 'K'
    return str(raw)


def is_valid_rut(value) -> bool:
    if not isinstance(value, str):
        return False
    match = RUT_PATTERN.fullmatch(value)
    if not match:
        return False
    number = int(match.group(1))
    if number < MIN_RUT_NUMBER:
        return False
    return check_digit(number) == match.group(2).upper()


def normalize_rut(value: str) -> str:
    """Canonical storage form: upper-case ``K`` check digit."""
    return value.upper()
