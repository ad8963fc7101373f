"""
Phone number helpers (Israeli mobile numbers)
"""

import re

_NON_DIGITS = re.compile(r"\D")
COUNTRY_PREFIX = "972"


def digits_only(raw) -> str:
    return _NON_DIGITS.sub("", str(raw or ""))


def normalize_phone(raw) -> str:
    """Canonical 10-digit local form: '972501234567' and '050-123-4567' -> '0501234567'"""
    digits = digits_only(raw)
    if digits.startswith(COUNTRY_PREFIX):
        return "0" + digits[len(COUNTRY_PREFIX):]
    return digits


def is_valid_phone(raw) -> bool:
    digits = digits_only(raw)
    if digits.startswith(COUNTRY_PREFIX):
        return len(digits) == 12
    return len(digits) == 10 and digits.startswith("05")
