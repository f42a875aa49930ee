"""
Pure normalization helpers for bulk student uploads. No I/O.
"""

import re
from datetime import date
from typing import Any, Optional

_DAY_FIRST = re.compile(r"^(\d{1,2})[-/](\d{1,2})[-/](\d{4})$")
_YEAR_FIRST = re.compile(r"^(\d{4})[-/](\d{1,2})[-/](\d{1,2})$")

# Phone numbers are assumed to belong to the Indian numbering plan unless they
# already carry a "+" country code.
DEFAULT_COUNTRY_CODE = "91"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def normalize_date(value: Any) -> Optional[str]:
    """
    Return ``YYYY-MM-DD`` for ``DD-MM-YYYY``, ``DD/MM/YYYY``, ``YYYY-MM-DD`` or
    ``YYYY/MM/DD`` input, zero-padding day and month. Any other shape gives None.

    Only the shape is checked here; ``2019-02-30`` normalizes fine and is
    rejected later by :func:`parse_iso_date`.
    """
    text = _text(value)
    if not text:
        return None

    match = _DAY_FIRST.match(text)
    if match:
        day, month, year = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    match = _YEAR_FIRST.match(text)
    if match:
        year, month, day = match.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    return None


def parse_iso_date(value: str) -> Optional[date]:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def normalize_phone(value: Any) -> str:
    """
    Best-effort canonical form for an Indian phone number.

    Keeps digits and "+", then:
    ``+91...`` is kept, ``91`` followed by more than 8 digits gains a "+",
    a bare 10-digit number gains ``+91``, any other ``+`` prefix is kept,
    and whatever digits remain otherwise get ``+91`` in front.

    This is not an E.164 parser: a 10-digit number from another country
    without its "+" prefix is tagged as Indian.
    """
    text = _text(value)
    if not text:
        return ""

    cleaned = re.sub(r"[^\d+]", "", text)
    if cleaned.startswith(f"+{DEFAULT_COUNTRY_CODE}"):
        return cleaned
    if cleaned.startswith(DEFAULT_COUNTRY_CODE) and len(cleaned) > 10:
        return f"+{cleaned}"

    digits = re.sub(r"\D", "", cleaned)
    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"
    if cleaned.startswith("+"):
        return cleaned
    return f"+{DEFAULT_COUNTRY_CODE}{digits}"


def phone_digits(value: str) -> str:
    return re.sub(r"\D", "", value or "")


def normalize_gender(value: Any) -> str:
    """Trim and capitalize: ``" fEMALE "`` -> ``"Female"``."""
    text = _text(value)
    if not text:
        return ""
    return text[:1].upper() + text[1:].lower()


def clean_text(value: Any) -> str:
    return _text(value)
