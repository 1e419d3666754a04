"""Map calibrated raw rows to semantic fields.

Breakdown tables only print a service or programme id on the row where it
changes; continuation rows leave the cell blank. The normalizer fills those
blanks from the previous row (a printed value also resets every finer carried
key), picks the amount from whichever of the two amount columns is used,
applies the known description corrections for the year, and drops filler
rows without a description.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pge_breakdowns.config import get_description_fixes, setup_logging
from pge_breakdowns.errors import MalformedRow
from pge_breakdowns.models import Category, NormalizedRow
from pge_breakdowns.transformer.category_rules import get_column_layout, get_rules
from pge_breakdowns.utils.parsing import parse_spanish_amount

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from decimal import Decimal

    from pge_breakdowns.models import RawRow
    from pge_breakdowns.transformer.category_rules import ColumnLayout

logger = setup_logging(__name__)

__all__ = ["normalize_rows", "read_amount"]

KEY_FIELDS = ("service", "programme")


def _cell(cells: tuple[str, ...], index: int | None) -> str:
    """Return a cell's text; absent columns read as blank."""
    if index is None or index >= len(cells):
        return ""
    return cells[index]


def read_amount(cells: tuple[str, ...], columns: tuple[int, int]) -> Decimal | None:
    """Return the amount from the one populated amount column.

    Returns
    -------
    Decimal | None
        Parsed amount, or ``None`` when both columns are blank (heading row).

    Raises
    ------
    MalformedRow
        If both columns are populated or the value is not a number.
    """
    first, second = (_cell(cells, index) for index in columns)
    if first and second:
        msg = "Both amount columns populated"
        raise MalformedRow(msg, cells)

    try:
        return parse_spanish_amount(first or second)
    except ValueError as err:
        raise MalformedRow(str(err), cells) from err


def _raw_key(cells: tuple[str, ...], layout: ColumnLayout, key: str) -> str | None:
    """Return the printed value of a key column, or ``None`` if the page has none."""
    index = getattr(layout, key)
    if index is None:
        return None
    value = _cell(cells, index)
    if key == "service" and layout.service_id_separator and value:
        # Programme pages print ``section.service``
        value = value.partition(layout.service_id_separator)[2]
    return value


def normalize_rows(
    rows: Iterable[RawRow],
    category: Category,
    year: int,
    *,
    constants: Mapping[str, str] | None = None,
    heading_description: str | None = None,
) -> list[NormalizedRow]:
    """Normalize calibrated rows for a breakdown family and year.

    Parameters
    ----------
    rows : Iterable[RawRow]
        Calibrated data rows in document order.
    category : Category
        Breakdown family; selects the column layout and carried keys.
    year : int
        Budget year; selects the layout and the description corrections.
    constants : Mapping[str, str], optional
        Values for keys the page does not print (e.g. the entity id of a
        non-state breakdown, the programme id of a programme breakdown).
    heading_description : str, optional
        Programme pages only: description given to rows that open a new
        service, so their subtotals match the entity breakdowns.

    Returns
    -------
    list[NormalizedRow]
        One row per raw row with a non-empty description.

    Raises
    ------
    MalformedRow
        If a row carries two amounts or an unparsable amount.
    UnsupportedLayout
        If no column layout is configured for ``(category, year)``.
    """
    layout = get_column_layout(category, year)
    carried_keys = get_rules(category).carried_keys
    fixes = get_description_fixes(year)
    constants = dict(constants or {})

    carried = dict.fromkeys(carried_keys, "")
    normalized: list[NormalizedRow] = []

    seen = 0
    for seen, row in enumerate(rows, start=1):
        cells = row.cells
        description = _cell(cells, layout.description)
        description = fixes.get(description, description)
        if not description:
            continue  # layout filler

        amount = read_amount(cells, layout.amounts)

        printed: set[str] = set()
        for position, key in enumerate(carried_keys):
            value = _raw_key(cells, layout, key)
            if value:
                carried[key] = value
                printed.add(key)
                for finer in carried_keys[position + 1 :]:
                    carried[finer] = ""

        keys = {
            key: carried[key] if key in carried else constants.get(key, "")
            for key in KEY_FIELDS
        }

        service_name = None
        if "service" in printed:
            service_name = description
            if category is Category.PROGRAMME and heading_description is not None:
                description = heading_description

        normalized.append(
            NormalizedRow(
                service=keys["service"],
                programme=keys["programme"],
                expense_concept=_cell(cells, layout.expense_concept),
                description=description,
                amount=amount,
                printed_keys=frozenset(printed),
                service_name=service_name,
            )
        )

    logger.debug("Normalized %d of %d rows (%s %d)", len(normalized), seen, category.value, year)
    return normalized
