"""`marktguru search raw|build`: query offers and print them."""
from __future__ import annotations
import json
import logging
import sys
from typing import Iterable, Optional

from .. import api
from ..auth.base import DiscoveryError
from ..auth.fetcher import Fetcher
from ..auth.runner import discover_api_key
from ..config import ConfigStore
from ..query import build_query
from .login import Discover

log = logging.getLogger("marktguru.cli")

DEFAULT_LIMIT = 10
RETAILER_FETCH_LIMIT = 100

USER_ERRORS = (api.CatalogError, DiscoveryError, ValueError)


def normalize_limit(limit: Optional[int]) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("Limit must be a positive number.")
    return int(limit)


def emit_warnings(warnings: Iterable[str]):
    for warning in warnings:
        print(f"Warning: {warning}", file=sys.stderr)


async def ensure_api_key(
    store: ConfigStore, *, json_output: bool = False, discover: Optional[Discover] = None,
) -> str:
    config = store.load()
    if config.api_key:
        return config.api_key

    stream = sys.stderr if json_output else sys.stdout
    progress = lambda msg: print(msg, file=stream)  # noqa: E731
    progress("No API key configured. Running login...")

    api_key = await (discover or discover_api_key)(progress)
    store.save(api_key=api_key)
    return api_key


def filter_by_retailer(offers: list[api.Offer], retailer: str) -> list[api.Offer]:
    needle = retailer.lower()
    return [o for o in offers if any(needle in a.lower() for a in o.advertisers)]


async def run_search(
    query: str,
    store: ConfigStore,
    *,
    zip_code: Optional[str] = None,
    limit: Optional[int] = None,
    retailer: Optional[str] = None,
    json_output: bool = False,
    discover: Optional[Discover] = None,
):
    api_key = await ensure_api_key(store, json_output=json_output, discover=discover)
    limit = normalize_limit(limit)
    # retailer filtering happens client-side, so over-fetch
    fetch_limit = max(limit, RETAILER_FETCH_LIMIT) if retailer else limit

    async with Fetcher() as fetcher:
        result = await api.search(
            fetcher,
            api_key,
            query,
            zip_code=zip_code or store.load().zip_code,
            limit=fetch_limit,
        )

    offers = result.results
    total = result.total_results
    if retailer:
        offers = filter_by_retailer(offers, retailer)[:limit]
        total = len(offers)
    else:
        offers = offers[:limit]

    if json_output:
        print(json.dumps({
            "query": query,
            "total": total,
            "offers": [api.simplify_offer(o) for o in offers],
        }, indent=2, ensure_ascii=False))
    else:
        result.results = offers
        result.total_results = total
        print(api.format_results_text(result, query))


async def search_raw_command(query: str, store: ConfigStore, **options) -> int:
    try:
        await run_search(query, store, **options)
    except USER_ERRORS as e:
        log.debug("Search failed", exc_info=True)
        print("Error:", e, file=sys.stderr)
        return 1
    return 0


async def search_build_command(
    store: ConfigStore,
    *,
    terms: Iterable[str] = (),
    phrases: Iterable[str] = (),
    wildcards: Iterable[str] = (),
    ors: Iterable[str] = (),
    groups: Iterable[str] = (),
    explain: bool = False,
    **options,
) -> int:
    try:
        built = build_query(terms, phrases, wildcards, ors, groups)
        if explain:
            print(f"Query: {built.query}", file=sys.stderr)
        emit_warnings(built.warnings)
        await run_search(built.query, store, **options)
    except USER_ERRORS as e:
        log.debug("Search failed", exc_info=True)
        print("Error:", e, file=sys.stderr)
        return 1
    return 0
