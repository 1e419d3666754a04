"""Configuration management for pge-breakdowns.

This module centralizes paths, environment variables, logging setup, and the
JSON rule loaders used by the extraction pipeline.

Rule files
----------
* ``config.json``: publication URL template and budget stage labels
* ``extraction_specs.json``: table fingerprints, per-era calibrations, column
  layouts, and description corrections

Environment variables
---------------------
``PGE_LOG_LEVEL`` sets the console log level (default ``INFO``). When
``LOGS_DIR`` is set, loggers also write a dated DEBUG log file there.
``PGE_SOURCE_BASE_URL`` overrides the publication base URL and
``PGE_HTTP_TIMEOUT`` the request timeout used by the URL loader.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import UTC, datetime
from functools import lru_cache
from pathlib import Path
from typing import Any, cast

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
RULES_DIR = Path(__file__).parent / "rules"
LOGS_DIR = Path(os.environ["LOGS_DIR"]) if os.getenv("LOGS_DIR") else None

LOG_LEVEL = os.getenv("PGE_LOG_LEVEL", "INFO").upper()
SOURCE_BASE_URL = os.getenv("PGE_SOURCE_BASE_URL", "")
HTTP_TIMEOUT = float(os.getenv("PGE_HTTP_TIMEOUT", "60"))


def setup_logging(name: str = "pge_breakdowns") -> logging.Logger:
    """Configure a console (and optional file) logger if not already present.

    Parameters
    ----------
    name : str, optional
        Logger namespace; reused to avoid duplicate handlers.

    Returns
    -------
    logging.Logger
        Logger with a console handler at ``PGE_LOG_LEVEL`` and, when
        ``LOGS_DIR`` is configured, a DEBUG-level file handler.
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(logging.DEBUG)

        # Console handler
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        console_format = logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
        console_handler.setFormatter(console_format)
        logger.addHandler(console_handler)

        # File handler
        if LOGS_DIR is not None:
            LOGS_DIR.mkdir(parents=True, exist_ok=True)
            log_filename = f"{datetime.now(UTC).strftime('%Y-%m-%d')}_run.log"
            file_handler = logging.FileHandler(LOGS_DIR / log_filename)
            file_handler.setLevel(logging.DEBUG)
            file_format = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
            file_handler.setFormatter(file_format)
            logger.addHandler(file_handler)

    return logger


def _load_rules_file(filename: str) -> dict[str, Any]:
    """Read one JSON rule file from ``RULES_DIR``."""
    rules_path = RULES_DIR / filename
    if not rules_path.exists():
        msg = f"Rule file not found: {rules_path}"
        raise FileNotFoundError(msg)

    with Path(rules_path).open(encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


@lru_cache(maxsize=1)
def get_config() -> dict[str, Any]:
    """Load the primary project configuration.

    Returns
    -------
    dict[str, Any]
        Parsed contents of ``rules/config.json`` including the publication
        URL template and stage labels.

    Raises
    ------
    FileNotFoundError
        If ``rules/config.json`` is missing.
    json.JSONDecodeError
        If the file exists but is not valid JSON.
    """
    return _load_rules_file("config.json")


@lru_cache(maxsize=1)
def get_extraction_specs() -> dict[str, Any]:
    """Load table extraction rules from ``extraction_specs.json``.

    Returns
    -------
    dict[str, Any]
        Style fingerprints, calibrations, column layouts, and description
        corrections.

    Raises
    ------
    FileNotFoundError
        If the specs file is missing.
    json.JSONDecodeError
        If the specs file cannot be parsed.
    """
    return _load_rules_file("extraction_specs.json")


def get_source_url_template() -> str:
    """Return the publication URL template with ``{year}``/``{stage}``/``{filename}``.

    ``PGE_SOURCE_BASE_URL`` replaces the configured host when set.
    """
    source = get_config()["source"]
    base_url = SOURCE_BASE_URL or cast("str", source["base_url"])
    return base_url.rstrip("/") + cast("str", source["path_template"])


def get_stage_label(stage: str) -> str:
    """Return the URL path label for a stage letter (``E`` → ``Ley``).

    Parameters
    ----------
    stage : str
        Stage letter taken from the filename.

    Returns
    -------
    str
        Configured label, falling back to the bill label for unknown letters.
    """
    labels = cast("dict[str, str]", get_config()["source"]["stage_labels"])
    return labels.get(stage, labels["A"])


def get_description_fixes(year: int) -> dict[str, str]:
    """Return exact-match description corrections for a budget year.

    Parameters
    ----------
    year : int
        Four-digit budget year.

    Returns
    -------
    dict[str, str]
        Mapping from the published (misspelled) text to its correction.
    """
    fixes = get_extraction_specs().get("description_fixes", {})
    return cast("dict[str, str]", fixes.get(str(year), {}))
