"""Breakdown classification from the published filename.

The PGE publication names every page with an underscore-separated code that
encodes the budget year, stage, book and institutional ids. The scheme
changed at known boundaries (2012, 2017, 2018), so grammars are kept in a
versioned rule table and looked up by year instead of being branched on.

Within an era the state-entity grammar is listed before the non-state one;
:func:`classify` returns the first match.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import PurePosixPath

from pge_breakdowns.config import setup_logging
from pge_breakdowns.errors import UnrecognizedFilename
from pge_breakdowns.models import Category

logger = setup_logging(__name__)

__all__ = [
    "FILENAME_GRAMMARS",
    "Classification",
    "FilenameGrammar",
    "classify",
    "extract_year",
    "is_breakdown",
]

YEAR_TOKEN = re.compile(r"N_(?P<year>\d\d)_(?P<stage>[ASE])")


@dataclass(frozen=True)
class FilenameGrammar:
    """One row of the filename rule table.

    Attributes
    ----------
    first_year, last_year : int | None
        Inclusive year range the grammar applies to; ``None`` is open-ended.
    category : Category
        Breakdown family the grammar identifies.
    pattern : re.Pattern[str]
        Regex with optional named groups ``entity_type``, ``section`` and
        ``entity``.
    """

    first_year: int | None
    last_year: int | None
    category: Category
    pattern: re.Pattern[str]

    def applies_to(self, year: int) -> bool:
        """Return whether ``year`` falls inside the grammar's range."""
        if self.first_year is not None and year < self.first_year:
            return False
        return self.last_year is None or year <= self.last_year


_STATE_2012 = re.compile(
    r"N_\d\d_[AE]_V_1_10(?P<entity_type>[1234])_1_1_2_2_[1234](?P<section>\d\d)_1_2\.HTM"
)
_NON_STATE_2012 = re.compile(
    r"N_\d\d_[AE]_V_1_10(?P<entity_type>[1234])_2_1_[1234](?P<section>\d\d)_1_1(?P<entity>\d\d\d)_2_2_1\.HTM"
)
# 2017 moved agencies and other bodies a level down the hierarchy
_NON_STATE_2017 = re.compile(
    r"N_\d\d_[AE]_V_1_(?:2_)?10(?P<entity_type>[1234])_2_1_[1234](?P<section>\d\d)_1_1(?P<entity>\d\d\d)_2_2_1\.HTM"
)
_STATE_OTHER = re.compile(
    r"N_\d\d_[ASE]_V_1_10(?P<entity_type>[1234])_2_2_2_1(?P<section>\d\d)_1_[12]_1\.HTM"
)
_NON_STATE_OTHER = re.compile(
    r"N_\d\d_[ASE]_V_1_10(?P<entity_type>[1234])_2_2_2_1(?P<section>\d\d)_1_[12]_1(?P<entity>\d\d\d)_1\.HTM"
)
_INCOME = re.compile(
    r"N_\d\d_[ASE]_R_2_10(?P<entity_type>\d)_1_2_1(?P<section>\d\d)_1_1(?P<entity>\d\d+)_1\.HTM"
)
# Only Social Security (section 60) programmes; internal transfers use the T_1 suffix
_PROGRAMME = re.compile(r"N_\d\d_[ASE]_R_31_2_1_G_1_1_(?:1\d\d\d\w_P|T_1)\.HTM")

FILENAME_GRAMMARS: tuple[FilenameGrammar, ...] = (
    FilenameGrammar(None, 2011, Category.STATE_ENTITY, _STATE_OTHER),
    FilenameGrammar(None, 2011, Category.NON_STATE_ENTITY, _NON_STATE_OTHER),
    FilenameGrammar(2012, 2016, Category.STATE_ENTITY, _STATE_2012),
    FilenameGrammar(2012, 2016, Category.NON_STATE_ENTITY, _NON_STATE_2012),
    FilenameGrammar(2017, 2017, Category.STATE_ENTITY, _STATE_2012),
    FilenameGrammar(2017, 2017, Category.NON_STATE_ENTITY, _NON_STATE_2017),
    FilenameGrammar(2018, None, Category.STATE_ENTITY, _STATE_OTHER),
    FilenameGrammar(2018, None, Category.NON_STATE_ENTITY, _NON_STATE_OTHER),
    FilenameGrammar(None, None, Category.INCOME, _INCOME),
    FilenameGrammar(None, None, Category.PROGRAMME, _PROGRAMME),
)


@dataclass(frozen=True)
class Classification:
    """Identifiers derived from a breakdown filename.

    Attributes
    ----------
    category : Category
        Breakdown family.
    year : int
        Four-digit budget year.
    stage : str
        ``"E"`` for the approved budget, ``"A"`` for the bill.
    section : str | None
        Two-digit parent section, when the grammar encodes it.
    entity_type : str | None
        ``1`` state, ``2``-``4`` non-state bodies, ``5`` Social Security.
    entity : str | None
        Non-state entity or income service id, when encoded.
    """

    category: Category
    year: int
    stage: str
    section: str | None = None
    entity_type: str | None = None
    entity: str | None = None

    @property
    def is_state_entity(self) -> bool:
        """Return whether the breakdown describes a state entity."""
        return self.category is Category.STATE_ENTITY

    @property
    def is_final(self) -> bool:
        """Return whether the document belongs to the approved budget."""
        return self.stage == "E"


def _basename(filename: str) -> str:
    """Strip directories and URL paths, keeping the page name."""
    return PurePosixPath(filename.replace("\\", "/")).name


def extract_year(filename: str) -> tuple[int, str]:
    """Return the budget year and stage letter encoded in a filename.

    Raises
    ------
    UnrecognizedFilename
        If the filename carries no ``N_YY_[ASE]`` token.
    """
    match = YEAR_TOKEN.search(_basename(filename))
    if match is None:
        raise UnrecognizedFilename(filename)
    return 2000 + int(match.group("year")), match.group("stage")


def classify(filename: str) -> Classification:
    """Derive category, year and encoded ids from a breakdown filename.

    Parameters
    ----------
    filename : str
        Path, URL or bare page name.

    Returns
    -------
    Classification
        First grammar match for the filename's year.

    Raises
    ------
    UnrecognizedFilename
        If no grammar applies. Bulk scans treat this as a filter signal.
    """
    name = _basename(filename)
    year, stage = extract_year(name)

    for grammar in FILENAME_GRAMMARS:
        if not grammar.applies_to(year):
            continue
        match = grammar.pattern.search(name)
        if match is None:
            continue
        groups = match.groupdict()
        logger.debug("Classified %s as %s (%d)", name, grammar.category.value, year)
        return Classification(
            category=grammar.category,
            year=year,
            stage=stage,
            section=groups.get("section"),
            entity_type=groups.get("entity_type"),
            entity=groups.get("entity"),
        )

    raise UnrecognizedFilename(filename)


def is_breakdown(filename: str, category: Category | None = None) -> bool:
    """Return whether a filename is a known breakdown, optionally of one category."""
    try:
        classification = classify(filename)
    except UnrecognizedFilename:
        return False
    return category is None or classification.category is category
