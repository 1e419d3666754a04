"""Tests for subtotal reconciliation over normalized row streams.

Tests cover:
1. Leaf/subtotal emission and document order
2. Nesting and sum consistency of every subtotal
3. Root closing and the single-row boundary case
4. Structural failures reported as ReconciliationError
5. Determinism across repeated runs
"""

from __future__ import annotations

from decimal import Decimal

import pytest

from pge_breakdowns.errors import BreakdownError, ReconciliationError
from pge_breakdowns.models import Category, ItemKind, Level, LineItem, NormalizedRow, OpenContext
from pge_breakdowns.transformer.category_rules import get_rules
from pge_breakdowns.transformer.reconciler import SubtotalReconciler, reconcile


def _row(
    description: str,
    amount: str | int | None = None,
    *,
    service: str = "",
    programme: str = "",
    concept: str = "",
    printed: tuple[str, ...] = (),
) -> NormalizedRow:
    return NormalizedRow(
        service=service,
        programme=programme,
        expense_concept=concept,
        description=description,
        amount=Decimal(amount) if amount is not None else None,
        printed_keys=frozenset(printed),
    )


def _state_root() -> OpenContext:
    return OpenContext(Level.SECTION, "18", "MINISTERIO DE EDUCACIÓN")


STATE_HIERARCHY = get_rules(Category.STATE_ENTITY).hierarchy

# One service with a programme holding two chapters, the second with an article
NESTED_ROWS = [
    _row("Ministerio", service="01", printed=("service",)),
    _row("Dirección", service="01", programme="111A", printed=("programme",)),
    _row("PERSONAL", service="01", programme="111A", concept="1"),
    _row("Altos cargos", "30", service="01", programme="111A", concept="10"),
    _row("Funcionarios", "70", service="01", programme="111A", concept="12"),
    _row("PERSONAL", "100", service="01", programme="111A"),
    _row("INVERSIONES", service="01", programme="111A", concept="6"),
    _row("Reposición", service="01", programme="111A", concept="63"),
    _row("Edificios", "20", service="01", programme="111A", concept="630"),
    _row("Reposición", "20", service="01", programme="111A"),
    _row("INVERSIONES", "20", service="01", programme="111A"),
    _row("Dirección", "120", service="01", programme="111A"),
    _row("Ministerio", "120", service="01", programme="111A"),
    _row("TOTAL SECCIÓN", "120", service="01", programme="111A"),
]


def _reconcile_nested() -> list[LineItem]:
    return reconcile(NESTED_ROWS, _state_root(), hierarchy=STATE_HIERARCHY, year=2013, section="18")


# =============================================================================
# Emission
# =============================================================================


class TestEmission:
    """Tests for leaves, subtotals and their order."""

    def test_service_closed_by_matching_row(self) -> None:
        """Two leaves then a closing row give two leaves and one subtotal."""
        root = OpenContext(Level.SERVICE, "01", "TOTAL")
        rows = [
            _row("Foo", "10", service="01", concept="100"),
            _row("Bar", "20", service="01", concept="101"),
            _row("TOTAL", "30", service="01"),
        ]
        items = reconcile(rows, root)
        assert [(item.kind, item.amount) for item in items] == [
            (ItemKind.LEAF, Decimal(10)),
            (ItemKind.LEAF, Decimal(20)),
            (ItemKind.SUBTOTAL, Decimal(30)),
        ]
        assert items[-1].level is Level.SERVICE
        assert items[-1].service == "01"

    def test_single_row_closes_root(self) -> None:
        """A page with only its total row yields one root subtotal."""
        items = reconcile([_row("TOTAL SECCIÓN", "0")], _state_root(), hierarchy=STATE_HIERARCHY)
        assert len(items) == 1
        assert items[0].is_subtotal
        assert items[0].level is Level.SECTION
        assert items[0].description == "MINISTERIO DE EDUCACIÓN"

    def test_subtotal_in_closing_row_position(self) -> None:
        """Subtotals appear where their closing row was, after their leaves."""
        items = _reconcile_nested()
        assert [(item.kind.value, item.description) for item in items] == [
            ("leaf", "Altos cargos"),
            ("leaf", "Funcionarios"),
            ("subtotal", "PERSONAL"),
            ("leaf", "Edificios"),
            ("subtotal", "Reposición"),
            ("subtotal", "INVERSIONES"),
            ("subtotal", "Dirección"),
            ("subtotal", "Ministerio"),
            ("subtotal", "MINISTERIO DE EDUCACIÓN"),
        ]

    def test_subtotal_keys_and_levels(self) -> None:
        """Subtotals carry the keys of their open path and their tier."""
        by_description = {item.description: item for item in _reconcile_nested() if item.is_subtotal}
        article = by_description["Reposición"]
        assert (article.level, article.service, article.programme, article.expense_concept) == (
            Level.ARTICLE,
            "01",
            "111A",
            "63",
        )
        programme = by_description["Dirección"]
        assert (programme.level, programme.service, programme.programme, programme.expense_concept) == (
            Level.PROGRAMME,
            "01",
            "111A",
            "",
        )
        root = by_description["MINISTERIO DE EDUCACIÓN"]
        assert (root.service, root.programme, root.section, root.year) == ("", "", "18", 2013)

    def test_leaf_with_code_matching_open_description(self) -> None:
        """A row introducing a code is a leaf even if its label matches an open context."""
        root = OpenContext(Level.SERVICE, "01", "TOTAL")
        rows = [
            _row("Precios públicos", concept="31"),
            _row("Precios públicos", "5", concept="310"),
            _row("Precios públicos", "5"),
            _row("TOTAL", "5"),
        ]
        items = reconcile(rows, root, hierarchy=get_rules(Category.INCOME).hierarchy)
        assert [item.kind for item in items] == [ItemKind.LEAF, ItemKind.SUBTOTAL, ItemKind.SUBTOTAL]
        assert items[0].expense_concept == "310"
        assert items[1].level is Level.ARTICLE

    def test_closing_row_unwinds_inner_context(self) -> None:
        """Closing an outer context first closes the inner ones at their leaf sums."""
        rows = [
            _row("PERSONAL", concept="1"),
            _row("Altos cargos", concept="10"),
            _row("Retribuciones", "30", concept="100"),
            _row("PERSONAL", "30"),
            _row("TOTAL", "30"),
        ]
        items = reconcile(rows, _state_root())
        assert [(item.kind, item.level, item.expense_concept, item.amount) for item in items] == [
            (ItemKind.LEAF, None, "100", Decimal(30)),
            (ItemKind.SUBTOTAL, Level.ARTICLE, "10", Decimal(30)),
            (ItemKind.SUBTOTAL, Level.CHAPTER, "1", Decimal(30)),
            (ItemKind.SUBTOTAL, Level.SECTION, "", Decimal(30)),
        ]
        assert items[1].description == "Altos cargos"

    def test_leaf_keys_follow_open_path(self) -> None:
        """A leaf after its programme closed does not keep the carried programme id."""
        rows = [
            _row("Ministerio", service="01", printed=("service",)),
            _row("Dirección", service="01", programme="111A", printed=("programme",)),
            _row("PERSONAL", service="01", programme="111A", concept="1"),
            _row("Altos cargos", "30", service="01", programme="111A", concept="10"),
            _row("PERSONAL", "30", service="01", programme="111A"),
            _row("Dirección", "30", service="01", programme="111A"),
            _row("Transferencias", "5", service="01", programme="111A", concept="4"),
            _row("Ministerio", "35", service="01", programme="111A"),
            _row("TOTAL", "35", service="01", programme="111A"),
        ]
        items = reconcile(rows, _state_root(), hierarchy=STATE_HIERARCHY)
        leaves = {item.description: item for item in items if not item.is_subtotal}
        assert (leaves["Altos cargos"].service, leaves["Altos cargos"].programme) == ("01", "111A")
        assert (leaves["Transferencias"].service, leaves["Transferencias"].programme) == ("01", "")
        assert items[-2].amount == Decimal(35)


# =============================================================================
# Structural properties
# =============================================================================


class TestConsistency:
    """Tests for nesting and sum agreement."""

    def test_subtotals_equal_sum_of_their_leaves(self) -> None:
        """Each subtotal equals the leaves emitted since its context opened."""
        items = _reconcile_nested()
        leaves = [item.amount for item in items if not item.is_subtotal]
        assert items[-1].amount == sum(leaves)
        assert items[2].amount == items[0].amount + items[1].amount

    def test_mismatched_total_rejected(self) -> None:
        """A subtotal that differs from its leaves raises."""
        rows = [*NESTED_ROWS[:5], _row("PERSONAL", "99", service="01", programme="111A"), *NESTED_ROWS[6:]]
        with pytest.raises(ReconciliationError, match="differs from the sum"):
            reconcile(rows, _state_root(), hierarchy=STATE_HIERARCHY)

    def test_mismatch_allowed_when_checks_disabled(self) -> None:
        """With check_totals off, printed subtotals are trusted."""
        rows = [*NESTED_ROWS[:5], _row("PERSONAL", "99", service="01", programme="111A"), *NESTED_ROWS[6:]]
        items = reconcile(rows, _state_root(), hierarchy=STATE_HIERARCHY, check_totals=False)
        assert items[2].amount == Decimal(99)

    def test_idempotent(self) -> None:
        """Running the same reconciler twice gives identical records."""
        reconciler = SubtotalReconciler(_state_root(), hierarchy=STATE_HIERARCHY, year=2013, section="18")
        assert reconciler.reconcile(NESTED_ROWS) == reconciler.reconcile(NESTED_ROWS)

    def test_root_left_untouched(self) -> None:
        """The caller's root context does not accumulate totals."""
        root = _state_root()
        reconcile(NESTED_ROWS, root, hierarchy=STATE_HIERARCHY)
        assert root.leaf_total == Decimal(0)
        assert root.leaf_count == 0


# =============================================================================
# Failures
# =============================================================================


class TestFailures:
    """Tests for structural errors."""

    def test_empty_stream(self) -> None:
        """No rows means the root never closes."""
        with pytest.raises(ReconciliationError, match="Empty row stream"):
            reconcile([], _state_root(), hierarchy=STATE_HIERARCHY)

    def test_unclosed_context_at_end(self) -> None:
        """The page total cannot close the root while a chapter is open."""
        rows = [
            _row("PERSONAL", concept="1"),
            _row("Altos cargos", "30", concept="10"),
            _row("TOTAL SECCIÓN", "30"),
        ]
        with pytest.raises(ReconciliationError, match="still open") as exc_info:
            reconcile(rows, _state_root(), filename="N_13.HTM")
        error = exc_info.value
        assert error.filename == "N_13.HTM"
        assert [ctx.level for ctx in error.open_contexts] == [Level.SECTION, Level.CHAPTER]
        assert "section:18 > chapter:1" in str(error)

    def test_heading_without_new_identifier(self) -> None:
        """A row with no amount must open something."""
        rows = [_row("Sin código"), _row("TOTAL", "0")]
        with pytest.raises(ReconciliationError, match="introduces no new identifier"):
            reconcile(rows, _state_root())

    def test_sibling_opened_while_open(self) -> None:
        """A chapter cannot open while another chapter is still open."""
        rows = [
            _row("PERSONAL", concept="1"),
            _row("Altos cargos", "30", concept="10"),
            _row("BIENES", concept="2"),
            _row("TOTAL", "30"),
        ]
        with pytest.raises(ReconciliationError, match="still open"):
            reconcile(rows, _state_root())

    def test_unwound_outer_total_still_checked(self) -> None:
        """The matched context keeps its printed total and its sum check."""
        rows = [
            _row("PERSONAL", concept="1"),
            _row("Altos cargos", concept="10"),
            _row("Retribuciones", "30", concept="100"),
            _row("PERSONAL", "25"),
            _row("TOTAL", "25"),
        ]
        with pytest.raises(ReconciliationError, match="differs from the sum"):
            reconcile(rows, _state_root())

    def test_last_row_without_amount(self) -> None:
        """The last row must carry the page total."""
        with pytest.raises(ReconciliationError, match="does not close the root"):
            reconcile([_row("TOTAL")], _state_root())

    def test_errors_share_base_class(self) -> None:
        """Batch callers can catch every failure as BreakdownError."""
        with pytest.raises(BreakdownError):
            reconcile([], _state_root())

    def test_root_outside_hierarchy(self) -> None:
        """The root tier must belong to the hierarchy."""
        with pytest.raises(ValueError, match="not part of the hierarchy"):
            SubtotalReconciler(_state_root(), hierarchy=get_rules(Category.INCOME).hierarchy)
