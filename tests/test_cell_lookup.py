"""Tests for single-cell lookups on summary pages."""

from __future__ import annotations

import pytest

from pge_breakdowns.extractor.cell_lookup import get_item_by_position, get_value_by_description
from pge_breakdowns.extractor.html_document import BudgetDocument
from tests import pages

SUMMARY_ROWS = [
    ["1", "Gastos de personal", "1.500", "10,5"],
    ["2", "Gastos corrientes en bienes y servicios", "700", "4,9"],
    ["", "Total", "2.200", "15,4"],
]


@pytest.fixture
def summary_document() -> BudgetDocument:
    """Chapter summary page in the S0ESTILO8 layout."""
    content = pages.style_table_page(SUMMARY_ROWS, header=["Cap.", "Explicación", "Importe", "%"])
    return BudgetDocument.from_content(pages.INCOME_FILENAME, content)


class TestGetItemByPosition:
    """Tests for get_item_by_position."""

    def test_header_excluded(self, summary_document: BudgetDocument) -> None:
        """Row 0 is the first data row."""
        assert get_item_by_position(summary_document, 0, 1) == "Gastos de personal"

    def test_negative_positions(self, summary_document: BudgetDocument) -> None:
        """Negative positions count from the end."""
        assert get_item_by_position(summary_document, -1, -2) == "2.200"

    def test_out_of_range(self, summary_document: BudgetDocument) -> None:
        """Positions outside the table raise IndexError."""
        with pytest.raises(IndexError):
            get_item_by_position(summary_document, 10, 0)


class TestGetValueByDescription:
    """Tests for get_value_by_description."""

    def test_rightmost_cell_of_matching_row(self, summary_document: BudgetDocument) -> None:
        """The last cell of the labelled row is returned."""
        assert get_value_by_description(summary_document, "Total") == "15,4"

    def test_custom_description_column(self, summary_document: BudgetDocument) -> None:
        """The label column can be moved."""
        assert get_value_by_description(summary_document, "2", description_position=0) == "4,9"

    def test_no_match(self, summary_document: BudgetDocument) -> None:
        """An unknown label yields None."""
        assert get_value_by_description(summary_document, "Inversiones reales") is None
