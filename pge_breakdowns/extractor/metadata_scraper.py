"""Brute-force search for header labels (section, entity, programme names).

Header cells have no stable structural anchor across eras: some years tag
them with the ``S0ESTILO3`` style, others bury them in generated CSS, and the
div-era pages use bare ``span`` elements. Instead of navigating the tree, the
scraper walks text-bearing nodes from a prioritized list of candidate sources
and returns the first text matching the label pattern.

Adding support for a new era means appending a candidate source (or a label)
below, not touching the search loop.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pge_breakdowns.config import get_extraction_specs, setup_logging
from pge_breakdowns.utils.parsing import collapse_whitespace

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from lxml.html import HtmlElement

    from pge_breakdowns.extractor.html_document import BudgetDocument

logger = setup_logging(__name__)

__all__ = [
    "CANDIDATE_SOURCES",
    "LABELS",
    "LabelMatch",
    "find_label",
    "scrape_entity",
    "scrape_income_entity",
    "scrape_programme",
    "scrape_section",
]


@dataclass(frozen=True)
class LabelMatch:
    """Identifier and name captured from a header label."""

    code: str
    name: str


# Accented names rule out \w, so the name is captured with .+
LABELS: dict[str, re.Pattern[str]] = {
    "section": re.compile(r"^Secci[oó]n:\s*(\d\d)\s+(.+)$"),
    "entity": re.compile(r"^Organismo:\s*(\d\d\d)\s+(.+)$"),
    "income_entity": re.compile(r"^(?:Servicio|Organismo|Entidad):\s*(\d+)\s+(.+)$"),
    "programme": re.compile(r"^Programa:\s*(\d\d\d\w)\s+(.+)$"),
}


def _header_cells(document: BudgetDocument) -> Iterable[HtmlElement]:
    header_class = get_extraction_specs()["row_sources"]["header_style_class"]
    return document.select_by_class(header_class)


def _table_cells(document: BudgetDocument) -> Iterable[HtmlElement]:
    return document.select_by_tag("td")


def _spans(document: BudgetDocument) -> Iterable[HtmlElement]:
    return document.select_by_tag("span")


CANDIDATE_SOURCES: tuple[tuple[str, Callable[[BudgetDocument], Iterable[HtmlElement]]], ...] = (
    ("header style", _header_cells),
    ("table cells", _table_cells),
    ("spans", _spans),
)


def find_label(document: BudgetDocument, label: str) -> LabelMatch | None:
    """Return the first header text matching a label pattern.

    Parameters
    ----------
    document : BudgetDocument
        Page to scan.
    label : str
        Key into :data:`LABELS` (``"section"``, ``"entity"``,
        ``"income_entity"`` or ``"programme"``).

    Returns
    -------
    LabelMatch | None
        Captured id and name, or ``None`` when no node matches; callers
        treat that as "name unknown".
    """
    pattern = LABELS[label]
    for source_name, source in CANDIDATE_SOURCES:
        for element in source(document):
            text = collapse_whitespace(element.text_content())
            match = pattern.match(text)
            if match:
                logger.debug("%s label found in %s: %s", label, source_name, text)
                return LabelMatch(code=match.group(1), name=match.group(2).strip())

    logger.debug("%s label not found in %s", label, document)
    return None


def scrape_section(document: BudgetDocument) -> LabelMatch | None:
    """Return the ``Sección: NN name`` header."""
    return find_label(document, "section")


def scrape_entity(document: BudgetDocument) -> LabelMatch | None:
    """Return the ``Organismo: NNN name`` header of non-state entity pages."""
    return find_label(document, "entity")


def scrape_income_entity(document: BudgetDocument) -> LabelMatch | None:
    """Return the service/agency/entity header of income pages."""
    return find_label(document, "income_entity")


def scrape_programme(document: BudgetDocument) -> LabelMatch | None:
    """Return the ``Programa: NNNx name`` header."""
    return find_label(document, "programme")
