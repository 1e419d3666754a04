"""Transformer module: row normalization, subtotal reconciliation, and naming.

Key exports:
    normalize_rows: Map raw cells to fields and fill carried keys
    reconcile: Rebuild nested subtotals from the normalized row stream
    collect_institutions: Institutional naming hierarchy of a breakdown
    line_items_to_dataframe: pandas view of the emitted records
"""

from pge_breakdowns.transformer.category_rules import (
    CATEGORY_RULES,
    CategoryRules,
    ColumnLayout,
    get_column_layout,
    get_rules,
)
from pge_breakdowns.transformer.formatter import (
    institutions_to_dataframe,
    line_items_to_dataframe,
    line_items_to_records,
)
from pge_breakdowns.transformer.grid_normalizer import normalize_rows, read_amount
from pge_breakdowns.transformer.institutions import collect_institutions, service_institutions
from pge_breakdowns.transformer.reconciler import SubtotalReconciler, reconcile

__all__ = [
    "CATEGORY_RULES",
    "CategoryRules",
    "ColumnLayout",
    "SubtotalReconciler",
    "collect_institutions",
    "get_column_layout",
    "get_rules",
    "institutions_to_dataframe",
    "line_items_to_dataframe",
    "line_items_to_records",
    "normalize_rows",
    "read_amount",
    "reconcile",
    "service_institutions",
]
