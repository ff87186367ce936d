"""Text and number helpers shared by the matcher and the record schemas.

Values reaching the reconciliation core come from heuristic OCR / PDF text
extraction, so the parsers here never raise: anything unreadable becomes the
caller's default (zero for amounts, ``None`` for dates).
"""
from __future__ import annotations

import re
import unicodedata
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

_CENT = Decimal("0.01")
_NON_ALNUM = re.compile(r"[^a-z0-9]")
_CURRENCY_PREFIX = re.compile(r"^(?:r\$|us\$|\$|brl|usd)\s*", re.IGNORECASE)
_BR_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_DOT_THOUSANDS = re.compile(r"^-?\d{1,3}(?:\.\d{3})+$")


def normalize_text(text: str | None) -> str:
    """Return a comparison key: lower-case ASCII letters and digits only.

    Accents are removed by NFD decomposition followed by dropping combining
    marks, so ``"Café São Paulo"`` becomes ``"cafesaopaulo"``.
    """
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return _NON_ALNUM.sub("", stripped).strip()


def parse_amount(
    raw,
    default: Decimal | None = Decimal("0"),
    dot_thousands: bool | None = None,
) -> Decimal | None:
    """Parse a monetary amount, returning *default* when it cannot be read.

    Accepts numbers as well as text such as ``"R$ 1.234,56"``, ``"1234,56"``
    or ``"1,234.56"``.  The result is quantized to cents.

    With *dot_thousands* a lone dot group such as ``"1.234"`` or
    ``"1.234.567"`` is a thousands separator rather than a decimal point.
    When left as ``None`` it follows the configured currency: on for ``R$``.
    """
    if raw is None or isinstance(raw, bool):
        return default
    if isinstance(raw, Decimal):
        value = raw
    elif isinstance(raw, int):
        value = Decimal(raw)
    elif isinstance(raw, float):
        value = Decimal(str(raw))
    elif isinstance(raw, str):
        stripped = raw.strip()
        text = _CURRENCY_PREFIX.sub("", stripped).replace(" ", "")
        if not text:
            return default
        if _DOT_THOUSANDS.match(text):
            if dot_thousands is None:
                dot_thousands = _brazilian_notation(stripped)
            if dot_thousands:
                text = text.replace(".", "")
        text = _to_plain_notation(text)
        try:
            value = Decimal(text)
        except InvalidOperation:
            return default
    else:
        return default

    if not value.is_finite():
        return default
    try:
        return value.quantize(_CENT)
    except InvalidOperation:
        # Too many integer digits for the decimal context, e.g. a boleto line
        return default


def _brazilian_notation(text: str) -> bool:
    if re.match(r"^(?:r\$|brl)", text, re.IGNORECASE):
        return True
    if re.match(r"^(?:us\$|\$|usd)", text, re.IGNORECASE):
        return False
    from app.config import get_settings

    return get_settings().CURRENCY_SYMBOL.strip().upper() == "R$"


def _to_plain_notation(text: str) -> str:
    """Turn ``1.234,56`` / ``1,234.56`` / ``1234,56`` into ``1234.56``."""
    if "," in text and "." in text:
        # Whichever separator comes last is the decimal one
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if "," in text:
        return text.replace(",", ".")
    return text


def parse_date(raw) -> date | None:
    """Parse a calendar date; unreadable input gives ``None``."""
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    m = _BR_DATE.match(text)
    if m:
        day, month, year = (int(g) for g in m.groups())
        try:
            return date(year, month, day)
        except ValueError:
            return None
    return None
