"""pge-breakdowns: line-item extraction from Spanish General State Budget pages.

The package reads the HTML breakdown pages published for every PGE budget
since 2008, whose markup and naming change almost every year, and emits a
uniform stream of leaf and subtotal line items plus the institutional naming
hierarchy.

Architecture
------------
* ``extractor``: filename classification, lazy lxml parsing, data row
  location across table/div layouts, and brute-force header label scraping.
* ``transformer``: per-family rule sets, carried-key normalization, subtotal
  reconciliation, institution collection, and pandas formatting.
* ``breakdowns``: the per-document facade tying the pipeline together.
* ``scraper``: default path/URL loaders (httpx); no caching.

Configuration
-------------
Rule tables live in ``pge_breakdowns/rules/*.json``. ``PGE_LOG_LEVEL``,
``LOGS_DIR``, ``PGE_SOURCE_BASE_URL`` and ``PGE_HTTP_TIMEOUT`` may be set in the
environment or a ``.env`` file.

Examples
--------
Extract the records of a saved page:

    >>> from pge_breakdowns import open_breakdown
    >>> breakdown = open_breakdown("N_13_E_V_1_101_1_1_2_2_118_1_2.HTM")
    >>> items = breakdown.line_items()
"""

from pge_breakdowns.breakdowns import Breakdown, open_breakdown
from pge_breakdowns.errors import (
    BreakdownError,
    MalformedRow,
    MissingMetadata,
    ReconciliationError,
    UnrecognizedFilename,
    UnsupportedLayout,
)
from pge_breakdowns.extractor import BudgetDocument, classify, is_breakdown
from pge_breakdowns.models import Category, Institution, ItemKind, Level, LineItem

__version__ = "0.1.0"
__all__ = [
    "Breakdown",
    "BreakdownError",
    "BudgetDocument",
    "Category",
    "Institution",
    "ItemKind",
    "Level",
    "LineItem",
    "MalformedRow",
    "MissingMetadata",
    "ReconciliationError",
    "UnrecognizedFilename",
    "UnsupportedLayout",
    "__version__",
    "classify",
    "is_breakdown",
    "open_breakdown",
]
