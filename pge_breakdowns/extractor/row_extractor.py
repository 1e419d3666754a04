"""Locate and linearize the data rows of a breakdown page.

Three layouts have been published over the years, and no single selector
survives all of them:

1. ``style``: a table tagged with a known style class (``S0ESTILO9`` in
   2008, ``S0ESTILO8`` afterwards);
2. ``thead``: the 2014 pages with generated CSS, where the data table is only
   recognizable as the owner of a ``thead`` element;
3. ``div``: from 2019 on there is no table at all; rows are sibling ``div``
   blocks at a fixed position, with ``span`` children as cells.

Strategies are tried in that order and the first non-empty one wins. Known
per-era artifacts (an extra leading cell in some entity breakdowns) are then
removed using the calibrations in ``extraction_specs.json``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

from pge_breakdowns.config import get_extraction_specs, setup_logging
from pge_breakdowns.errors import UnsupportedLayout
from pge_breakdowns.extractor.html_document import has_class_xpath
from pge_breakdowns.models import Category, RawRow

if TYPE_CHECKING:
    from collections.abc import Callable

    from lxml.html import HtmlElement

    from pge_breakdowns.extractor.html_document import BudgetDocument

logger = setup_logging(__name__)

__all__ = [
    "ROW_STRATEGIES",
    "apply_calibrations",
    "extract_raw_rows",
    "locate_rows",
    "row_cells",
]


def _row_sources() -> dict[str, Any]:
    return cast("dict[str, Any]", get_extraction_specs()["row_sources"])


def _rows_by_style_class(document: BudgetDocument) -> list[HtmlElement]:
    """Rows of the first fingerprinted table, header row dropped."""
    for style_class in _row_sources()["table_style_classes"]:
        rows = document.xpath(f"//table[{has_class_xpath(style_class)}]//tr")
        if rows:
            logger.debug("Rows located via table.%s", style_class)
            return rows[1:]
    return []


def _rows_by_table_header(document: BudgetDocument) -> list[HtmlElement]:
    """Rows of the table that owns the first ``thead``, header row dropped."""
    headers = document.xpath("//table/thead")
    if not headers:
        return []
    table = headers[0].getparent()
    return table.xpath(".//tr")[1:]


def _rows_by_div_blocks(document: BudgetDocument) -> list[HtmlElement]:
    """Positional ``div`` blocks standing in for rows (no-table era)."""
    if document.has_tag("table"):
        return []
    return document.xpath(_row_sources()["div_rows_xpath"])


ROW_STRATEGIES: tuple[tuple[str, Callable[[BudgetDocument], list[HtmlElement]]], ...] = (
    ("style", _rows_by_style_class),
    ("thead", _rows_by_table_header),
    ("div", _rows_by_div_blocks),
)


def row_cells(row: HtmlElement) -> tuple[str, ...]:
    """Return the stripped text of a row's ``td`` cells, or its ``span`` cells."""
    cells = row.xpath(".//td")
    if not cells:
        cells = row.xpath(".//span")
    return tuple(cell.text_content().strip() for cell in cells)


def locate_rows(document: BudgetDocument) -> list[RawRow]:
    """Return the uncalibrated data rows of a page.

    Raises
    ------
    UnsupportedLayout
        If no strategy finds any row.
    """
    for source, strategy in ROW_STRATEGIES:
        elements = strategy(document)
        if elements:
            logger.debug("%s: %d rows via %s layout", document, len(elements), source)
            return [RawRow(cells=row_cells(element), source=source) for element in elements]

    msg = f"No known table or div layout in {document.filename}"
    raise UnsupportedLayout(msg)


def _calibration_applies(calibration: dict[str, Any], category: Category, year: int) -> bool:
    if category.value not in calibration.get("categories", []):
        return False
    first_year = calibration.get("first_year")
    last_year = calibration.get("last_year")
    if first_year is not None and year < first_year:
        return False
    return last_year is None or year <= last_year


def apply_calibrations(rows: list[RawRow], category: Category, year: int) -> list[RawRow]:
    """Drop per-era layout artifacts before the positional column mapping."""
    for calibration in get_extraction_specs().get("calibrations", []):
        if not _calibration_applies(calibration, category, year):
            continue
        drop = int(calibration.get("drop_leading_cells", 0))
        if drop:
            rows = [RawRow(cells=row.cells[drop:], source=row.source) for row in rows]
    return rows


def extract_raw_rows(
    document: BudgetDocument,
    category: Category | None = None,
    year: int | None = None,
) -> list[RawRow]:
    """Locate the data rows of a page and calibrate them for its era.

    Parameters
    ----------
    document : BudgetDocument
        Page to read.
    category, year : optional
        Ruleset selectors; taken from the document's filename when omitted.

    Returns
    -------
    list[RawRow]
        Rows in document order, header excluded.

    Raises
    ------
    UnsupportedLayout
        If no layout strategy matches.
    """
    if category is None or year is None:
        classification = document.classification
        category = category or classification.category
        year = year or classification.year

    rows = locate_rows(document)
    return apply_calibrations(rows, category, year)
