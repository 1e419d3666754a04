"""One breakdown page, end to end.

:class:`Breakdown` ties the pipeline together for a single document: the
filename classification selects the rule set, the header scraper supplies the
names and ids the filename lacks, and the shared normalizer and reconciler
produce the record stream. All four breakdown families go through the same
code; what differs is looked up from the family's rule set and from the small
per-family tables below.
"""

from __future__ import annotations

import warnings
from functools import cached_property
from typing import TYPE_CHECKING

from pge_breakdowns.config import setup_logging
from pge_breakdowns.errors import MissingMetadata
from pge_breakdowns.extractor.html_document import BudgetDocument
from pge_breakdowns.extractor.metadata_scraper import (
    LabelMatch,
    scrape_entity,
    scrape_income_entity,
    scrape_programme,
    scrape_section,
)
from pge_breakdowns.extractor.row_extractor import extract_raw_rows
from pge_breakdowns.models import Category, Institution, Level, OpenContext
from pge_breakdowns.transformer.category_rules import get_rules
from pge_breakdowns.transformer.grid_normalizer import normalize_rows
from pge_breakdowns.transformer.institutions import collect_institutions
from pge_breakdowns.transformer.reconciler import reconcile

if TYPE_CHECKING:
    from pathlib import Path

    from pge_breakdowns.extractor.filename_classifier import Classification
    from pge_breakdowns.models import LineItem, NormalizedRow, RawRow
    from pge_breakdowns.transformer.category_rules import CategoryRules

logger = setup_logging(__name__)

__all__ = ["Breakdown", "open_breakdown"]


class Breakdown:
    """Extraction facade for one breakdown page.

    Parameters
    ----------
    document : BudgetDocument
        Page to extract; its tree is only parsed when rows or names are
        requested.
    check_totals : bool, optional
        Reject subtotals that differ from the sum of their leaves.

    Raises
    ------
    UnrecognizedFilename
        On first access to any filename-derived attribute, when the page is
        not a known breakdown.
    """

    def __init__(self, document: BudgetDocument, *, check_totals: bool = True) -> None:
        self.document = document
        self.check_totals = check_totals

    def __repr__(self) -> str:
        return f"Breakdown({self.document.filename!r})"

    @classmethod
    def open(cls, location: str | Path, *, check_totals: bool = True) -> Breakdown:
        """Build a breakdown from a local path or URL."""
        return cls(BudgetDocument.open(location), check_totals=check_totals)

    # -------------------------------------------------------------------------
    # Filename metadata
    # -------------------------------------------------------------------------

    @property
    def filename(self) -> str:
        return self.document.filename

    @property
    def classification(self) -> Classification:
        return self.document.classification

    @property
    def category(self) -> Category:
        return self.classification.category

    @property
    def year(self) -> int:
        return self.classification.year

    @property
    def is_final(self) -> bool:
        return self.classification.is_final

    @property
    def rules(self) -> CategoryRules:
        return get_rules(self.category)

    def source_url(self) -> str:
        """Official publication URL of the page."""
        return self.document.source_url()

    # -------------------------------------------------------------------------
    # Header metadata
    # -------------------------------------------------------------------------

    def _warn_missing(self, label: str) -> None:
        message = f"{label} label not found in {self.filename}"
        logger.warning(message)
        warnings.warn(message, MissingMetadata, stacklevel=3)

    @cached_property
    def section_label(self) -> LabelMatch | None:
        label = scrape_section(self.document)
        if label is None:
            self._warn_missing("Section")
        return label

    @cached_property
    def entity_label(self) -> LabelMatch | None:
        """Entity header of non-state and income pages; ``None`` otherwise."""
        if self.category is Category.NON_STATE_ENTITY:
            label = scrape_entity(self.document)
        elif self.category is Category.INCOME:
            label = scrape_income_entity(self.document)
        else:
            return None
        if label is None:
            self._warn_missing("Entity")
        return label

    @cached_property
    def programme_label(self) -> LabelMatch | None:
        """Programme header of programme pages; ``None`` otherwise."""
        if self.category is not Category.PROGRAMME:
            return None
        label = scrape_programme(self.document)
        if label is None:
            self._warn_missing("Programme")
        return label

    @property
    def section(self) -> str:
        """Section id, from the filename or, for programme pages, the header."""
        if self.classification.section is not None:
            return self.classification.section
        return self.section_label.code if self.section_label is not None else ""

    @property
    def section_name(self) -> str | None:
        return self.section_label.name if self.section_label is not None else None

    @property
    def entity(self) -> str | None:
        return self.classification.entity

    @property
    def entity_name(self) -> str | None:
        return self.entity_label.name if self.entity_label is not None else None

    @property
    def programme(self) -> str | None:
        return self.programme_label.code if self.programme_label is not None else None

    @property
    def programme_name(self) -> str | None:
        return self.programme_label.name if self.programme_label is not None else None

    @property
    def name(self) -> str | None:
        """Name of whatever the page as a whole describes."""
        if self.category is Category.STATE_ENTITY:
            return self.section_name
        if self.category is Category.PROGRAMME:
            return self.programme_name
        return self.entity_name

    # -------------------------------------------------------------------------
    # Rows and records
    # -------------------------------------------------------------------------

    def raw_rows(self) -> list[RawRow]:
        """Calibrated data rows of the page."""
        return extract_raw_rows(self.document, self.category, self.year)

    def _constant_keys(self) -> dict[str, str]:
        if self.category in (Category.NON_STATE_ENTITY, Category.INCOME):
            return {"service": self.entity or ""}
        if self.category is Category.PROGRAMME:
            return {"programme": self.programme or ""}
        return {}

    def rows(self) -> list[NormalizedRow]:
        """Normalized rows with carried keys filled in."""
        heading = self.programme_name if self.category is Category.PROGRAMME else None
        return normalize_rows(
            self.raw_rows(),
            self.category,
            self.year,
            constants=self._constant_keys(),
            heading_description=heading,
        )

    def root_context(self) -> OpenContext:
        """Context for the whole page, closed by its last row."""
        level = self.rules.root_level
        if level is Level.SECTION:
            key = self.section
        elif level is Level.PROGRAMME:
            key = self.programme or ""
        else:
            key = self.entity or ""
        return OpenContext(level=level, key=key, description=self.name or "")

    def line_items(self) -> list[LineItem]:
        """Leaves and subtotals of the page, in document order.

        Raises
        ------
        UnsupportedLayout
            If the page matches no known layout.
        MalformedRow
            If a row cannot be mapped to fields.
        ReconciliationError
            If the subtotal structure cannot be rebuilt.
        """
        logger.info("Extracting %s (%s %d)", self.filename, self.category.value, self.year)
        return reconcile(
            self.rows(),
            self.root_context(),
            hierarchy=self.rules.hierarchy,
            year=self.year,
            section=self.section,
            filename=self.filename,
            check_totals=self.check_totals,
        )

    def expenses(self) -> list[LineItem]:
        """Line items of an expense (entity or programme) breakdown."""
        if self.category is Category.INCOME:
            msg = f"{self.filename} is an income breakdown"
            raise ValueError(msg)
        return self.line_items()

    def income(self) -> list[LineItem]:
        """Line items of an income breakdown."""
        if self.category is not Category.INCOME:
            msg = f"{self.filename} is not an income breakdown"
            raise ValueError(msg)
        return self.line_items()

    def institutions(self) -> list[Institution]:
        """Institutional naming facts described by the page."""
        needs_rows = self.category in (Category.STATE_ENTITY, Category.PROGRAMME)
        return collect_institutions(
            self.category,
            self.section,
            self.rows() if needs_rows else (),
            section_name=self.section_name if self.category is not Category.NON_STATE_ENTITY else None,
            entity=self.entity,
            entity_name=self.entity_name,
        )

    def children(self) -> list[Institution]:
        """Service-level institutions below the page's section."""
        return [institution for institution in self.institutions() if institution.service is not None]


def open_breakdown(location: str | Path, *, check_totals: bool = True) -> Breakdown:
    """Build a :class:`Breakdown` from a local path or URL."""
    return Breakdown.open(location, check_totals=check_totals)
