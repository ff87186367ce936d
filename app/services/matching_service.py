"""Pairwise matching rules between one statement expense and one invoice."""
from __future__ import annotations

from decimal import Decimal

from app.services.text_service import normalize_text, parse_amount

DEFAULT_VALUE_TOLERANCE = Decimal("0.01")
PREFIX_LENGTH = 10


def descriptions_match(first: str | None, second: str | None) -> bool:
    """Return True when two free-text descriptions plausibly name the same merchant.

    Matches on normalized equality, on containment (statement lines are often
    truncated or prefixed versions of the supplier name) or, when both keys are
    longer than ``PREFIX_LENGTH``, on a shared fixed-width prefix.
    """
    a = normalize_text(first)
    b = normalize_text(second)
    if not a or not b:
        return False
    if a == b:
        return True
    if a in b or b in a:
        return True
    if len(a) > PREFIX_LENGTH and len(b) > PREFIX_LENGTH:
        return a[:PREFIX_LENGTH] == b[:PREFIX_LENGTH]
    return False


def values_match(first, second, tolerance: Decimal = DEFAULT_VALUE_TOLERANCE) -> bool:
    """Return True when two amounts differ by at most *tolerance*."""
    a = parse_amount(first)
    b = parse_amount(second)
    return abs(a - b) <= tolerance
