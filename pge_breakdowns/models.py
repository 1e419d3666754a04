"""Record types shared across the extraction pipeline.

This module contains pure data structures with no business logic dependencies,
ensuring they can be imported without circular dependencies.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any

__all__ = [
    "Category",
    "Institution",
    "ItemKind",
    "Level",
    "LineItem",
    "NormalizedRow",
    "OpenContext",
    "RawRow",
    "concept_level",
]


class Category(StrEnum):
    """Breakdown families recognized from the filename."""

    STATE_ENTITY = "state_entity"
    NON_STATE_ENTITY = "non_state_entity"
    INCOME = "income"
    PROGRAMME = "programme"


class Level(StrEnum):
    """Hierarchy tiers a context can open and a subtotal can close."""

    SECTION = "section"
    SERVICE = "service"
    PROGRAMME = "programme"
    CHAPTER = "chapter"
    ARTICLE = "article"
    CONCEPT = "concept"
    SUBCONCEPT = "subconcept"


# Economic classification depth is given by the code length
_CONCEPT_LEVELS = {1: Level.CHAPTER, 2: Level.ARTICLE, 3: Level.CONCEPT}


def concept_level(code: str) -> Level:
    """Return the economic classification tier of an expense/income code.

    Examples
    --------
    >>> concept_level("1")
    <Level.CHAPTER: 'chapter'>
    >>> concept_level("12000")
    <Level.SUBCONCEPT: 'subconcept'>
    """
    return _CONCEPT_LEVELS.get(len(code), Level.SUBCONCEPT)


class ItemKind(StrEnum):
    """Whether a line item is an elementary row or a closed subtotal."""

    LEAF = "leaf"
    SUBTOTAL = "subtotal"


@dataclass(frozen=True)
class RawRow:
    """Trimmed text cells of one data row, header rows excluded.

    Attributes
    ----------
    cells : tuple[str, ...]
        Cell texts in document order.
    source : str
        Layout strategy that produced the row (``"style"``, ``"thead"``,
        or ``"div"``).
    """

    cells: tuple[str, ...]
    source: str = "style"


@dataclass(frozen=True)
class NormalizedRow:
    """Row mapped to semantic fields with carried keys filled in.

    Attributes
    ----------
    service, programme : str
        Hierarchy keys after blank-carrying (empty when unknown).
    expense_concept : str
        Economic classification code; empty on closing rows.
    description : str
        Row label after typo corrections.
    amount : Decimal | None
        ``None`` marks a heading row that prints no amount.
    printed_keys : frozenset[str]
        Carried keys (``"service"``, ``"programme"``) actually present in the
        raw row, as opposed to inherited from earlier rows.
    service_name : str | None
        Name of the service when this row opens a new one.
    """

    service: str
    programme: str
    expense_concept: str
    description: str
    amount: Decimal | None
    printed_keys: frozenset[str] = frozenset()
    service_name: str | None = None

    @property
    def is_heading(self) -> bool:
        """Return whether the row prints no amount."""
        return self.amount is None


@dataclass
class OpenContext:
    """A hierarchy level currently open on the reconciliation stack.

    Attributes
    ----------
    level : Level
        Tier the context represents.
    key : str
        Identifier at that tier (section number, service id, code...).
    description : str
        Label the closing row is expected to repeat.
    leaf_total : Decimal
        Sum of the leaf amounts emitted while the context was open.
    leaf_count : int
        Number of those leaves.
    """

    level: Level
    key: str
    description: str
    leaf_total: Decimal = field(default_factory=Decimal)
    leaf_count: int = 0


@dataclass(frozen=True)
class LineItem:
    """One emitted budget record, either a leaf or a closed subtotal."""

    year: int
    section: str
    service: str
    programme: str
    expense_concept: str
    description: str
    amount: Decimal
    kind: ItemKind = ItemKind.LEAF
    level: Level | None = None

    @property
    def is_subtotal(self) -> bool:
        """Return whether the item closes a context."""
        return self.kind is ItemKind.SUBTOTAL

    def to_dict(self) -> dict[str, Any]:
        """Return a plain-dict view with enum values flattened to strings."""
        record = asdict(self)
        record["kind"] = self.kind.value
        record["level"] = self.level.value if self.level is not None else None
        return record


@dataclass(frozen=True)
class Institution:
    """Naming fact for the institutional hierarchy, independent of amounts.

    ``service`` is ``None`` for the section itself.
    """

    section: str
    service: str | None
    description: str | None

    def to_dict(self) -> dict[str, Any]:
        """Return a plain-dict view."""
        return asdict(self)
