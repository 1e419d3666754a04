"""Lazily parsed breakdown page.

A :class:`BudgetDocument` pairs a filename with a loader callable. Nothing is
read or parsed at construction: the filename classification and the lxml tree
are each computed on first access and cached on the instance, so bulk scans
that only need filename metadata never touch the content.
"""

from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING

import lxml.html

from pge_breakdowns.config import get_source_url_template, get_stage_label, setup_logging
from pge_breakdowns.extractor.filename_classifier import Classification, classify
from pge_breakdowns.scraper.loader import fetch_document, is_url, read_document

if TYPE_CHECKING:
    from collections.abc import Callable

    from lxml.html import HtmlElement

logger = setup_logging(__name__)

__all__ = ["BudgetDocument", "has_class_xpath"]


def has_class_xpath(style_class: str) -> str:
    """Return an XPath predicate matching one token of the ``class`` attribute."""
    return f"contains(concat(' ', normalize-space(@class), ' '), ' {style_class} ')"


class BudgetDocument:
    """One published breakdown page and its lazily built tree.

    Parameters
    ----------
    filename : str
        Page name, path or URL; the basename drives classification.
    loader : Callable[[], bytes | str]
        Zero-argument collaborator returning the raw page content.
    """

    def __init__(self, filename: str, loader: Callable[[], bytes | str]) -> None:
        self.filename = filename
        self._loader = loader

    def __repr__(self) -> str:
        return f"BudgetDocument({Path(self.filename).name!r})"

    @classmethod
    def from_content(cls, filename: str, content: bytes | str) -> BudgetDocument:
        """Wrap already materialized content."""
        return cls(filename, lambda: content)

    @classmethod
    def from_path(cls, path: str | Path) -> BudgetDocument:
        """Build a document read from disk on first structural access."""
        return cls(str(path), lambda: read_document(path))

    @classmethod
    def from_url(cls, url: str) -> BudgetDocument:
        """Build a document downloaded on first structural access."""
        return cls(url, lambda: fetch_document(url))

    @classmethod
    def open(cls, location: str | Path) -> BudgetDocument:
        """Build a document from either a URL or a local path."""
        if is_url(location):
            return cls.from_url(str(location))
        return cls.from_path(location)

    # -------------------------------------------------------------------------
    # Memoized accessors
    # -------------------------------------------------------------------------

    @cached_property
    def classification(self) -> Classification:
        """Category, year and encoded ids (raises ``UnrecognizedFilename``)."""
        return classify(self.filename)

    @cached_property
    def tree(self) -> HtmlElement:
        """Parsed page; the loader is called here, once."""
        content = self._loader()
        logger.debug("Parsing %s", Path(self.filename).name)
        # lxml picks the charset from the page's meta tag when given bytes
        return lxml.html.document_fromstring(content)

    @property
    def year(self) -> int:
        return self.classification.year

    @property
    def is_final(self) -> bool:
        return self.classification.is_final

    def source_url(self) -> str:
        """Rebuild the official publication URL of this page."""
        template = get_source_url_template()
        return template.format(
            year=self.year,
            stage=get_stage_label(self.classification.stage),
            filename=Path(self.filename).name,
        )

    # -------------------------------------------------------------------------
    # Tree queries
    # -------------------------------------------------------------------------

    def select_by_class(self, style_class: str, tag: str = "*") -> list[HtmlElement]:
        """Return elements carrying a CSS style class, in document order."""
        return self.tree.xpath(f"//{tag}[{has_class_xpath(style_class)}]")

    def select_by_tag(self, tag: str) -> list[HtmlElement]:
        """Return every element with the given tag, in document order."""
        return self.tree.xpath(f"//{tag}")

    def has_tag(self, tag: str) -> bool:
        """Return whether the page contains at least one ``tag`` element."""
        return bool(self.tree.xpath(f"boolean(//{tag})"))

    def xpath(self, expression: str) -> list[HtmlElement]:
        """Run a raw XPath query against the tree."""
        return self.tree.xpath(expression)
