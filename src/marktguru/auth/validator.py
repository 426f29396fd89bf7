"""Checks a key candidate with one minimal live offer search."""
from __future__ import annotations
import logging

from ..api import SEARCH_URL, api_headers, search_params
from ..config import DEFAULT_ZIP_CODE
from .base import TransientFetchError
from .fetcher import Fetcher

log = logging.getLogger("marktguru.auth.validator")


async def validate_key(
    fetcher: Fetcher,
    candidate: str,
    *,
    zip_code: str = DEFAULT_ZIP_CODE,
    url: str = SEARCH_URL,
) -> bool:
    """True if the API answers 2xx to a search made with `candidate`.

    Timeouts and network errors count as a rejection.
    """
    params = search_params("test", zip_code=zip_code, limit=1)
    try:
        status = await fetcher.get_status(url, headers=api_headers(candidate), params=params)
    except TransientFetchError as e:
        log.debug(f"Validation request failed for {candidate[:6]}…: {e}")
        return False
    log.debug(f"Validation of {candidate[:6]}… returned HTTP {status}")
    return 200 <= status < 300
