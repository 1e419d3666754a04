"""Cell lookups for breakdown pages that do not need full parsing.

Summary pages (consolidated totals, chapter summaries) only need one or two
figures; these helpers read them by position or by row label.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pge_breakdowns.config import setup_logging
from pge_breakdowns.extractor.row_extractor import locate_rows

if TYPE_CHECKING:
    from pge_breakdowns.extractor.html_document import BudgetDocument

logger = setup_logging(__name__)

__all__ = ["get_item_by_position", "get_value_by_description"]


def get_item_by_position(document: BudgetDocument, row_position: int, column_position: int) -> str:
    """Return a cell by row and column position, header row excluded.

    Negative positions count from the end (``-1`` is the last row/column).

    Raises
    ------
    IndexError
        If either position is out of range.
    UnsupportedLayout
        If the page has no recognizable table.
    """
    rows = locate_rows(document)
    return rows[row_position].cells[column_position]


def get_value_by_description(
    document: BudgetDocument,
    description: str,
    description_position: int = 1,
) -> str | None:
    """Return the rightmost cell of the row whose label equals ``description``.

    Parameters
    ----------
    document : BudgetDocument
        Page to read.
    description : str
        Exact label text to look for.
    description_position : int, optional
        Column holding the label (default ``1``).

    Returns
    -------
    str | None
        Rightmost cell of the first matching row, or ``None`` if no row matches.
    """
    for row in locate_rows(document):
        if len(row.cells) <= description_position:
            continue
        if row.cells[description_position] == description:
            return row.cells[-1]

    logger.debug("No row labelled %r in %s", description, document)
    return None
