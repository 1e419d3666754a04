"""Shared parsing utilities for Spanish-locale amounts and scraped text."""

from __future__ import annotations

import re
from decimal import Decimal

from pge_breakdowns.config import setup_logging

logger = setup_logging(__name__)

_WHITESPACE = re.compile(r"\s+")
# Either correctly grouped thousands or a bare run of digits, optional decimals
_AMOUNT = re.compile(r"^(?:\d{1,3}(?:\.\d{3})+|\d+)(?:,\d+)?$")


def parse_spanish_amount(value_str: str | None) -> Decimal | None:
    """Parse an amount string using Spanish locale conventions.

    Spanish locale uses:
    - Comma (,) as decimal separator
    - Period (.) as thousands separator

    Budget tables never use the period as a decimal mark, so periods are only
    accepted as thousands separators between groups of three digits. Any other
    character (text, stray symbols) makes the cell malformed.

    Examples
    --------
    - "1.342" -> Decimal("1342")
    - "64.057,25" -> Decimal("64057.25")
    - "3,97" -> Decimal("3.97")
    - "-62.982" -> Decimal("-62982")
    - "(62.982)" -> Decimal("-62982")

    Parameters
    ----------
    value_str
        String representation of the amount in Spanish locale.

    Returns
    -------
    Decimal | None
        Parsed amount, or ``None`` when the cell is blank.

    Raises
    ------
    ValueError
        If the cell is not blank but is not a well-formed amount.
    """
    if value_str is None or value_str.strip() == "":
        return None

    cleaned = value_str.strip()

    # Negative sign or accounting parentheses
    is_negative = False
    if cleaned.startswith("(") and cleaned.endswith(")"):
        is_negative, cleaned = True, cleaned[1:-1].strip()
    elif cleaned.startswith("-"):
        is_negative, cleaned = True, cleaned[1:].strip()

    if not _AMOUNT.match(cleaned):
        msg = f"Could not parse amount: {value_str!r}"
        raise ValueError(msg)

    result = Decimal(cleaned.replace(".", "").replace(",", "."))
    return -result if is_negative else result


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace (including NBSP and line breaks) to one space.

    Later document generations scatter non-breaking spaces and stray newlines
    inside header cells; labels are matched against the collapsed text.
    """
    return _WHITESPACE.sub(" ", text.replace("\xa0", " ")).strip()
