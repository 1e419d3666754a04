"""Rebuild nested subtotal records from a flat breakdown row stream.

Breakdown tables never print an "open block" marker. A heading row (one with
no amount) whose keys introduce a finer identifier implicitly opens a new
context; a later row, identical in shape to a leaf, closes it by repeating the
heading's description and carrying the block total. The page's last row is
the total of the whole breakdown and closes the root context, which has no
heading row of its own and must be seeded by the caller.

The scan is a single forward pass over the rows with a LIFO stack of
:class:`~pge_breakdowns.models.OpenContext`:

* heading row with a new identifier: push a context (nothing emitted);
* row with an amount, no new identifier, and a description equal to an open
  context's: pop it and emit a subtotal in the closing row's position. Inner
  contexts left open above it are unwound first, each closed at the sum of
  its leaves since no row printed its total;
* any other row with an amount: emit a leaf;
* last row: close the root, which must be the only context left.

Leaf amounts accumulate into every open context, and a subtotal that does not
match the sum of its leaves is rejected unless ``check_totals`` is off.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal
from typing import TYPE_CHECKING

from pge_breakdowns.config import setup_logging
from pge_breakdowns.errors import ReconciliationError
from pge_breakdowns.models import ItemKind, Level, LineItem, OpenContext, concept_level
from pge_breakdowns.transformer.category_rules import CONCEPT_LEVELS

if TYPE_CHECKING:
    from collections.abc import Sequence

    from pge_breakdowns.models import NormalizedRow

logger = setup_logging(__name__)

__all__ = ["SubtotalReconciler", "reconcile"]

_KEY_LEVELS = {"service": Level.SERVICE, "programme": Level.PROGRAMME}
_CONCEPT_TIERS = frozenset(CONCEPT_LEVELS)


class SubtotalReconciler:
    """Single-pass reconciliation of one breakdown's rows.

    Parameters
    ----------
    root : OpenContext
        Context describing the whole page (section, entity or programme).
    hierarchy : Sequence[Level], optional
        Tiers from coarsest to finest; defaults to the entity ordering
        (section > service > programme > economic codes).
    year : int, optional
        Budget year stamped on every record.
    section : str, optional
        Section id stamped on every record.
    filename : str, optional
        Used in error messages only.
    check_totals : bool, optional
        Reject subtotals that differ from the sum of their leaves.
    """

    def __init__(
        self,
        root: OpenContext,
        *,
        hierarchy: Sequence[Level] | None = None,
        year: int = 0,
        section: str = "",
        filename: str | None = None,
        check_totals: bool = True,
    ) -> None:
        self.hierarchy = tuple(hierarchy) if hierarchy is not None else tuple(Level)
        if root.level not in self.hierarchy:
            msg = f"Root level {root.level.value} is not part of the hierarchy"
            raise ValueError(msg)
        self.root = root
        self.year = year
        self.section = section
        self.filename = filename
        self.check_totals = check_totals

    def depth(self, level: Level) -> int:
        return self.hierarchy.index(level)

    def reconcile(self, rows: Sequence[NormalizedRow]) -> list[LineItem]:
        """Return leaves and subtotals in document order.

        Raises
        ------
        ReconciliationError
            If the stack does not collapse to exactly the root by the last
            row, a heading opens nothing, or a subtotal disagrees with its
            leaves.
        """
        if not rows:
            msg = "Empty row stream: root context never closed"
            raise ReconciliationError(msg, filename=self.filename, open_contexts=[self.root])

        # Fresh copy so repeated runs start from a clean running total
        stack = [replace(self.root, leaf_total=Decimal(0), leaf_count=0)]
        items: list[LineItem] = []

        *body, last = rows
        for row in body:
            self._consume(row, stack, items)
        self._close_root(last, stack, items)

        subtotals = sum(1 for item in items if item.is_subtotal)
        logger.debug(
            "Reconciled %s: %d leaves, %d subtotals",
            self.filename or "rows",
            len(items) - subtotals,
            subtotals,
        )
        return items

    # -------------------------------------------------------------------------
    # Row classification
    # -------------------------------------------------------------------------

    def _new_level(self, row: NormalizedRow, stack: list[OpenContext]) -> Level | None:
        """Return the deepest tier at which the row introduces a new identifier."""
        open_keys = {ctx.level: ctx.key for ctx in stack}
        candidates = [
            level
            for key, level in _KEY_LEVELS.items()
            if key in row.printed_keys
            and level in self.hierarchy
            and getattr(row, key) != open_keys.get(level)
        ]
        if row.expense_concept:
            candidates.append(concept_level(row.expense_concept))
        if not candidates:
            return None
        return max(candidates, key=self.depth)

    @staticmethod
    def _row_key(row: NormalizedRow, level: Level) -> str:
        if level is Level.SERVICE:
            return row.service
        if level is Level.PROGRAMME:
            return row.programme
        return row.expense_concept

    def _matching_context(self, row: NormalizedRow, stack: list[OpenContext]) -> int | None:
        """Return the stack index of the innermost non-root context the row closes."""
        for index in range(len(stack) - 1, 0, -1):
            if stack[index].description == row.description:
                return index
        return None

    # -------------------------------------------------------------------------
    # Stack operations
    # -------------------------------------------------------------------------

    def _consume(self, row: NormalizedRow, stack: list[OpenContext], items: list[LineItem]) -> None:
        new_level = self._new_level(row, stack)

        if row.is_heading:
            if new_level is None:
                msg = "Heading row introduces no new identifier"
                raise ReconciliationError(msg, filename=self.filename, row=row, open_contexts=stack)
            top = stack[-1]
            if self.depth(new_level) <= self.depth(top.level):
                msg = f"Row opens a {new_level.value} while {top.level.value} {top.key!r} is still open"
                raise ReconciliationError(msg, filename=self.filename, row=row, open_contexts=stack)
            stack.append(OpenContext(new_level, self._row_key(row, new_level), row.description))
            return

        if new_level is None:
            index = self._matching_context(row, stack)
            if index is not None:
                self._unwind(row, stack, items, index)
                items.append(self._close(row, stack))
                return

        self._emit_leaf(row, stack, items)

    def _unwind(self, row: NormalizedRow, stack: list[OpenContext], items: list[LineItem], index: int) -> None:
        """Close the contexts above ``stack[index]`` at the sum of their leaves."""
        while len(stack) - 1 > index:
            ctx = stack[-1]
            logger.debug("Implicitly closing %s %r in %s", ctx.level.value, ctx.key, self.filename or "rows")
            items.append(self._close(row, stack, amount=ctx.leaf_total))

    def _path_keys(self, row: NormalizedRow, stack: list[OpenContext]) -> dict[str, str]:
        """Service and programme of a leaf: printed on the row, else the open path."""
        path = {ctx.level: ctx.key for ctx in stack}
        return {
            key: getattr(row, key) if key in row.printed_keys else path.get(level, "")
            for key, level in _KEY_LEVELS.items()
        }

    def _emit_leaf(self, row: NormalizedRow, stack: list[OpenContext], items: list[LineItem]) -> None:
        amount = row.amount if row.amount is not None else Decimal(0)
        for ctx in stack:
            ctx.leaf_total += amount
            ctx.leaf_count += 1
        keys = self._path_keys(row, stack)
        items.append(
            LineItem(
                year=self.year,
                section=self.section,
                service=keys["service"],
                programme=keys["programme"],
                expense_concept=row.expense_concept,
                description=row.description,
                amount=amount,
            )
        )

    def _close(
        self,
        row: NormalizedRow,
        stack: list[OpenContext],
        amount: Decimal | None = None,
    ) -> LineItem:
        """Pop the top context and return its subtotal record.

        ``amount`` defaults to the closing row's amount; unwound contexts pass
        their own leaf total.
        """
        path = {ctx.level: ctx.key for ctx in stack}
        ctx = stack.pop()
        if amount is None:
            amount = row.amount if row.amount is not None else Decimal(0)

        if self.check_totals and ctx.leaf_count and ctx.leaf_total != amount:
            msg = (
                f"{ctx.level.value} {ctx.key!r} total {amount} differs from "
                f"the sum of its leaves {ctx.leaf_total}"
            )
            raise ReconciliationError(msg, filename=self.filename, row=row, open_contexts=[*stack, ctx])

        return LineItem(
            year=self.year,
            section=self.section,
            service=path.get(Level.SERVICE, ""),
            programme=path.get(Level.PROGRAMME, ""),
            expense_concept=ctx.key if ctx.level in _CONCEPT_TIERS else "",
            description=ctx.description,
            amount=amount,
            kind=ItemKind.SUBTOTAL,
            level=ctx.level,
        )

    def _close_root(self, row: NormalizedRow, stack: list[OpenContext], items: list[LineItem]) -> None:
        if len(stack) != 1:
            msg = "Page ended with contexts still open"
            raise ReconciliationError(msg, filename=self.filename, row=row, open_contexts=stack)
        if row.amount is None or row.expense_concept:
            msg = "Last row does not close the root context"
            raise ReconciliationError(msg, filename=self.filename, row=row, open_contexts=stack)
        items.append(self._close(row, stack))


def reconcile(
    rows: Sequence[NormalizedRow],
    root: OpenContext,
    *,
    hierarchy: Sequence[Level] | None = None,
    year: int = 0,
    section: str = "",
    filename: str | None = None,
    check_totals: bool = True,
) -> list[LineItem]:
    """Reconcile normalized rows into leaves and subtotals.

    Convenience wrapper around :class:`SubtotalReconciler`; see its
    parameters.
    """
    reconciler = SubtotalReconciler(
        root,
        hierarchy=hierarchy,
        year=year,
        section=section,
        filename=filename,
        check_totals=check_totals,
    )
    return reconciler.reconcile(rows)
