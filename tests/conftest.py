"""Pytest configuration for pge_breakdowns tests.

This module provides:
- Documents for one sample breakdown of each family, built in memory
- A loader that counts calls, for laziness checks
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from pge_breakdowns.extractor.html_document import BudgetDocument
from tests import pages


@pytest.fixture
def state_document() -> BudgetDocument:
    """2013 state-entity page (S0ESTILO8 table, leading filler cell)."""
    return BudgetDocument.from_content(pages.STATE_FILENAME, pages.state_page())


@pytest.fixture
def non_state_document() -> BudgetDocument:
    """2014 non-state entity page (thead table with generated CSS)."""
    return BudgetDocument.from_content(pages.NON_STATE_FILENAME, pages.non_state_page())


@pytest.fixture
def income_document() -> BudgetDocument:
    """2014 income page (S0ESTILO8 table, no filler cell)."""
    return BudgetDocument.from_content(pages.INCOME_FILENAME, pages.income_page())


@pytest.fixture
def programme_document() -> BudgetDocument:
    """2019 Social Security programme page (div/span layout)."""
    return BudgetDocument.from_content(pages.PROGRAMME_FILENAME, pages.programme_page())


class CountingLoader:
    """Loader collaborator recording how many times content was requested."""

    def __init__(self, content: str) -> None:
        self.content = content
        self.calls = 0

    def __call__(self) -> str:
        self.calls += 1
        return self.content


@pytest.fixture
def counting_loader() -> Callable[[str], CountingLoader]:
    """Factory for :class:`CountingLoader` instances."""
    return CountingLoader
