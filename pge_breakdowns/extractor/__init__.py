"""Extractor module: filename classification, row location, and header scraping.

Key exports:
    BudgetDocument: Lazily parsed breakdown page
    classify: Derive category and year from a filename
    extract_raw_rows: Locate and calibrate the data rows of a page
    find_label: Brute-force header label search
"""

from pge_breakdowns.extractor.cell_lookup import get_item_by_position, get_value_by_description
from pge_breakdowns.extractor.filename_classifier import (
    FILENAME_GRAMMARS,
    Classification,
    FilenameGrammar,
    classify,
    extract_year,
    is_breakdown,
)
from pge_breakdowns.extractor.html_document import BudgetDocument
from pge_breakdowns.extractor.metadata_scraper import (
    LabelMatch,
    find_label,
    scrape_entity,
    scrape_income_entity,
    scrape_programme,
    scrape_section,
)
from pge_breakdowns.extractor.row_extractor import apply_calibrations, extract_raw_rows, locate_rows

__all__ = [
    "FILENAME_GRAMMARS",
    "BudgetDocument",
    "Classification",
    "FilenameGrammar",
    "LabelMatch",
    "apply_calibrations",
    "classify",
    "extract_raw_rows",
    "extract_year",
    "find_label",
    "get_item_by_position",
    "get_value_by_description",
    "is_breakdown",
    "locate_rows",
    "scrape_entity",
    "scrape_income_entity",
    "scrape_programme",
    "scrape_section",
]
