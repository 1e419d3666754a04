"""Tests for the pandas views of extracted records."""

from decimal import Decimal

from pge_breakdowns.models import Institution, ItemKind, Level, LineItem
from pge_breakdowns.transformer.formatter import (
    INSTITUTION_COLUMNS,
    LINE_ITEM_COLUMNS,
    institutions_to_dataframe,
    line_items_to_dataframe,
    line_items_to_records,
)

ITEMS = [
    LineItem(2013, "18", "01", "111A", "100", "Retribuciones", Decimal("10.50")),
    LineItem(2013, "18", "01", "111A", "", "Dirección", Decimal("10.50"), ItemKind.SUBTOTAL, Level.PROGRAMME),
]


class TestLineItems:
    """Tests for line item formatting."""

    def test_records_flatten_enums(self) -> None:
        """Kind and level become plain strings."""
        records = line_items_to_records(ITEMS)
        assert records[0]["kind"] == "leaf"
        assert records[0]["level"] is None
        assert records[1]["kind"] == "subtotal"
        assert records[1]["level"] == "programme"

    def test_dataframe(self) -> None:
        """One row per item, columns in a fixed order, amounts kept exact."""
        df = line_items_to_dataframe(ITEMS)
        assert list(df.columns) == LINE_ITEM_COLUMNS
        assert len(df) == 2
        assert df.loc[0, "amount"] == Decimal("10.50")
        assert df["kind"].tolist() == ["leaf", "subtotal"]

    def test_empty(self) -> None:
        """No items still gives the full column set."""
        assert list(line_items_to_dataframe([]).columns) == LINE_ITEM_COLUMNS


class TestInstitutions:
    """Tests for institution formatting."""

    def test_dataframe(self) -> None:
        """Section rows keep a missing service."""
        df = institutions_to_dataframe([Institution("18", None, "EDUCACIÓN"), Institution("18", "01", "Ministerio")])
        assert list(df.columns) == INSTITUTION_COLUMNS
        assert df["service"].isna().tolist() == [True, False]
