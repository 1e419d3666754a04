"""Per-category rule sets for the shared reconciliation core.

Every breakdown family runs through the same normalizer and reconciler; what
differs is captured here:

* the hierarchy order (entity pages nest service > programme, programme
  pages nest programme > service);
* which keys are carried down blank cells and which are constant for the
  whole page;
* the positional column layout, loaded from ``extraction_specs.json`` and
  keyed by (category, year).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pge_breakdowns.config import get_extraction_specs, setup_logging
from pge_breakdowns.errors import UnsupportedLayout
from pge_breakdowns.models import Category, Level

logger = setup_logging(__name__)

__all__ = [
    "CATEGORY_RULES",
    "CONCEPT_LEVELS",
    "CategoryRules",
    "ColumnLayout",
    "get_column_layout",
    "get_rules",
]

CONCEPT_LEVELS = (Level.CHAPTER, Level.ARTICLE, Level.CONCEPT, Level.SUBCONCEPT)


@dataclass(frozen=True)
class CategoryRules:
    """How one breakdown family maps onto the hierarchy.

    Attributes
    ----------
    category : Category
        Family the rules apply to.
    root_level : Level
        Tier of the context the caller seeds (the whole page).
    hierarchy : tuple[Level, ...]
        Tiers from coarsest to finest; depth comparisons use this order.
    carried_keys : tuple[str, ...]
        Keys filled down blank cells, coarsest first. A printed value resets
        every finer carried key.
    """

    category: Category
    root_level: Level
    hierarchy: tuple[Level, ...]
    carried_keys: tuple[str, ...]


CATEGORY_RULES: dict[Category, CategoryRules] = {
    Category.STATE_ENTITY: CategoryRules(
        category=Category.STATE_ENTITY,
        root_level=Level.SECTION,
        hierarchy=(Level.SECTION, Level.SERVICE, Level.PROGRAMME, *CONCEPT_LEVELS),
        carried_keys=("service", "programme"),
    ),
    Category.NON_STATE_ENTITY: CategoryRules(
        category=Category.NON_STATE_ENTITY,
        root_level=Level.SERVICE,
        hierarchy=(Level.SERVICE, Level.PROGRAMME, *CONCEPT_LEVELS),
        carried_keys=("programme",),
    ),
    Category.INCOME: CategoryRules(
        category=Category.INCOME,
        root_level=Level.SERVICE,
        hierarchy=(Level.SERVICE, *CONCEPT_LEVELS),
        carried_keys=(),
    ),
    Category.PROGRAMME: CategoryRules(
        category=Category.PROGRAMME,
        root_level=Level.PROGRAMME,
        hierarchy=(Level.PROGRAMME, Level.SERVICE, *CONCEPT_LEVELS),
        carried_keys=("service",),
    ),
}


def get_rules(category: Category) -> CategoryRules:
    """Return the rule set of a breakdown family."""
    return CATEGORY_RULES[category]


@dataclass(frozen=True)
class ColumnLayout:
    """Positional mapping from calibrated cells to row fields.

    ``None`` means the page has no such column and the value comes from the
    filename or header metadata instead.
    """

    service: int | None
    programme: int | None
    expense_concept: int
    description: int
    amounts: tuple[int, int]
    service_id_separator: str | None = None

    @classmethod
    def from_spec(cls, spec: dict[str, Any]) -> ColumnLayout:
        columns = spec["columns"]
        first_amount, second_amount = columns["amounts"]
        return cls(
            service=columns.get("service"),
            programme=columns.get("programme"),
            expense_concept=columns["expense_concept"],
            description=columns["description"],
            amounts=(first_amount, second_amount),
            service_id_separator=spec.get("service_id_separator"),
        )


def get_column_layout(category: Category, year: int) -> ColumnLayout:
    """Return the column layout configured for a (category, year) pair.

    Raises
    ------
    UnsupportedLayout
        If no configured layout covers the pair.
    """
    for spec in get_extraction_specs().get("column_layouts", []):
        if spec["category"] != category.value:
            continue
        first_year = spec.get("first_year")
        last_year = spec.get("last_year")
        if first_year is not None and year < first_year:
            continue
        if last_year is not None and year > last_year:
            continue
        return ColumnLayout.from_spec(spec)

    msg = f"No column layout for {category.value} breakdowns of {year}"
    raise UnsupportedLayout(msg)
