"""Collect the institutional naming hierarchy of a breakdown.

Names are gathered independently of amounts. Section-level names (and the
entity name of non-state and income pages) come from the scraped header
labels; service-level names come from the rows that open a new service.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pge_breakdowns.config import setup_logging
from pge_breakdowns.models import Category, Institution

if TYPE_CHECKING:
    from collections.abc import Iterable

    from pge_breakdowns.models import NormalizedRow

logger = setup_logging(__name__)

__all__ = ["collect_institutions", "service_institutions"]


def service_institutions(section: str, rows: Iterable[NormalizedRow]) -> list[Institution]:
    """Return one institution per row that opens a new service."""
    return [
        Institution(section=section, service=row.service, description=row.service_name)
        for row in rows
        if row.service_name is not None
    ]


def _unique(institutions: Iterable[Institution]) -> list[Institution]:
    seen: set[Institution] = set()
    result = []
    for institution in institutions:
        if institution not in seen:
            seen.add(institution)
            result.append(institution)
    return result


def collect_institutions(
    category: Category,
    section: str,
    rows: Iterable[NormalizedRow] = (),
    *,
    section_name: str | None = None,
    entity: str | None = None,
    entity_name: str | None = None,
) -> list[Institution]:
    """Return ``Institution`` triples for one breakdown.

    Parameters
    ----------
    category : Category
        Breakdown family.
    section : str
        Two-digit section id.
    rows : Iterable[NormalizedRow], optional
        Normalized rows; used by state-entity and programme pages.
    section_name : str, optional
        Scraped ``Sección`` label name.
    entity, entity_name : str, optional
        Entity id and scraped name for non-state and income pages.

    Returns
    -------
    list[Institution]
        Section first (when known for the family), then services, without
        duplicates.
    """
    if category is Category.NON_STATE_ENTITY:
        institutions = [Institution(section=section, service=entity, description=entity_name)]
    elif category is Category.INCOME:
        institutions = [
            Institution(section=section, service=None, description=section_name),
            Institution(section=section, service=entity, description=entity_name),
        ]
    else:
        institutions = [
            Institution(section=section, service=None, description=section_name),
            *service_institutions(section, rows),
        ]

    result = _unique(institutions)
    logger.debug("Collected %d institutions for section %s", len(result), section)
    return result
