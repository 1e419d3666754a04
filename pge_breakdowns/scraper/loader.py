"""Default document materialization collaborators.

The extraction core never performs I/O itself: a :class:`BudgetDocument`
receives a zero-argument loader and only calls it on first structural access.
This module provides the two loaders used in practice.

Functions
---------
read_document : Read raw bytes from a local path
fetch_document : GET raw bytes from a URL with httpx.Client

Notes
-----
No caching happens here; persisting downloaded pages is left to the caller.
"""

from __future__ import annotations

from pathlib import Path

import httpx

from pge_breakdowns.config import HTTP_TIMEOUT, setup_logging

# Module-level logger for load operations
logger = setup_logging(__name__)


def is_url(location: str | Path) -> bool:
    """Return whether a location names an http(s) resource."""
    return str(location).startswith(("http://", "https://"))


def read_document(path: str | Path) -> bytes:
    """Read a saved breakdown page from disk.

    Parameters
    ----------
    path : str | Path
        Location of the HTML file.

    Returns
    -------
    bytes
        Raw page content; encoding is left for the HTML parser to detect.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    """
    file_path = Path(path)
    if not file_path.exists():
        msg = f"Breakdown file not found: {file_path}"
        raise FileNotFoundError(msg)

    content = file_path.read_bytes()
    logger.debug("Read %s (%d bytes)", file_path.name, len(content))
    return content


def fetch_document(
    url: str,
    timeout: float = HTTP_TIMEOUT,
    client: httpx.Client | None = None,
) -> bytes:
    """Download a breakdown page synchronously using blocking I/O.

    Parameters
    ----------
    url : str
        URL to download from (supports redirects).
    timeout : float, optional
        HTTP request timeout in seconds. Defaults to ``PGE_HTTP_TIMEOUT``.
    client : httpx.Client, optional
        Preconfigured client (e.g. with a mock transport); a short-lived one
        is created when omitted.

    Returns
    -------
    bytes
        Raw response body.

    Raises
    ------
    httpx.HTTPError
        If HTTP request fails (4xx, 5xx, connection error).
    """
    logger.info("Downloading: %s", url)

    if client is not None:
        resp = client.get(url)
        resp.raise_for_status()  # Raise on 4xx/5xx
        return resp.content

    with httpx.Client(timeout=timeout, follow_redirects=True) as sync_client:
        resp = sync_client.get(url)
        resp.raise_for_status()  # Raise on 4xx/5xx

    logger.debug("Downloaded %s (%d bytes)", url, len(resp.content))
    return resp.content
