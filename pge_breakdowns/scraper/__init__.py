"""Loaders that materialize raw breakdown pages from disk or the web."""

from pge_breakdowns.scraper.loader import fetch_document, is_url, read_document

__all__ = ["fetch_document", "is_url", "read_document"]
