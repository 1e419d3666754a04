"""Shared utility functions for pge_breakdowns package."""

from pge_breakdowns.utils.parsing import collapse_whitespace, parse_spanish_amount

__all__ = [
    "collapse_whitespace",
    "parse_spanish_amount",
]
