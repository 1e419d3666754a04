"""Tabular views of extracted records for downstream aggregators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pandas as pd

from pge_breakdowns.config import setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pge_breakdowns.models import Institution, LineItem

logger = setup_logging(__name__)

__all__ = [
    "INSTITUTION_COLUMNS",
    "LINE_ITEM_COLUMNS",
    "institutions_to_dataframe",
    "line_items_to_dataframe",
    "line_items_to_records",
]

LINE_ITEM_COLUMNS = [
    "year",
    "section",
    "service",
    "programme",
    "expense_concept",
    "description",
    "amount",
    "kind",
    "level",
]
INSTITUTION_COLUMNS = ["section", "service", "description"]


def line_items_to_records(items: Iterable[LineItem]) -> list[dict[str, Any]]:
    """Return line items as plain dicts with enum values flattened."""
    return [item.to_dict() for item in items]


def line_items_to_dataframe(items: Iterable[LineItem]) -> pd.DataFrame:
    """Build a DataFrame of line items, one row per record, in document order.

    Amounts stay as ``Decimal`` objects (``object`` dtype) so no precision is
    lost before the caller decides how to aggregate.
    """
    records = line_items_to_records(items)
    df = pd.DataFrame.from_records(records, columns=LINE_ITEM_COLUMNS)
    logger.debug("Formatted %d line items", len(df))
    return df


def institutions_to_dataframe(institutions: Iterable[Institution]) -> pd.DataFrame:
    """Build a DataFrame of institution naming facts."""
    records = [institution.to_dict() for institution in institutions]
    return pd.DataFrame.from_records(records, columns=INSTITUTION_COLUMNS)
