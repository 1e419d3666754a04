"""Exceptions and warnings raised by the extraction pipeline.

Every fatal condition derives from :class:`BreakdownError` so a batch caller
can skip and log a document with a single ``except`` clause. Missing header
metadata is a warning, not an error: the name simply degrades to ``None``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pge_breakdowns.models import OpenContext

__all__ = [
    "BreakdownError",
    "MalformedRow",
    "MissingMetadata",
    "ReconciliationError",
    "UnrecognizedFilename",
    "UnsupportedLayout",
]


class BreakdownError(Exception):
    """Base class for structural mismatches between a document and the rules."""


class UnrecognizedFilename(BreakdownError, ValueError):
    """Filename matches none of the known breakdown grammars."""

    def __init__(self, filename: str) -> None:
        self.filename = filename
        super().__init__(f"Unrecognized breakdown filename: {filename}")


class UnsupportedLayout(BreakdownError):
    """No row-location strategy matches the document structure."""


class MalformedRow(BreakdownError):
    """A data row cannot be mapped to fields (unparsable or double amount)."""

    def __init__(self, message: str, cells: tuple[str, ...]) -> None:
        self.cells = cells
        super().__init__(f"{message}: {list(cells)}")


class ReconciliationError(BreakdownError):
    """The open-context stack does not collapse to the seeded root.

    Attributes
    ----------
    filename : str | None
        Document being reconciled.
    row : Any
        Offending normalized row, or ``None`` when the stream ended early.
    open_contexts : list[OpenContext]
        Stack snapshot at the failure point, root first.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: str | None = None,
        row: Any = None,
        open_contexts: list[OpenContext] | None = None,
    ) -> None:
        self.filename = filename
        self.row = row
        self.open_contexts = list(open_contexts or [])
        details = [message]
        if filename:
            details.append(f"file={filename}")
        if row is not None:
            details.append(f"row={row!r}")
        if self.open_contexts:
            path = " > ".join(f"{ctx.level.value}:{ctx.key or '-'}" for ctx in self.open_contexts)
            details.append(f"open={path}")
        super().__init__(" | ".join(details))


class MissingMetadata(UserWarning):
    """A header label (section, entity, programme) was not found."""
