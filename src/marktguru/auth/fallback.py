"""
Ordered fallback-until-success, shared by entry-URL fetching and
candidate validation. Alternatives are tried one at a time, never in
parallel.
"""
from __future__ import annotations
import logging
from typing import Awaitable, Callable, Iterable, TypeVar

log = logging.getLogger("marktguru.auth.fallback")

T = TypeVar("T")
R = TypeVar("R")


class FallbackExhausted(Exception):
    """Nothing to try, or nothing tried was accepted."""


def _truthy(result) -> bool:
    return bool(result)


async def first_success(
    items: Iterable[T],
    attempt: Callable[[T], Awaitable[R]],
    accept: Callable[[R], bool] = _truthy,
) -> tuple[T, R]:
    """
    Await `attempt(item)` for each item in order and return `(item, result)`
    for the first result `accept` approves. Later items are never attempted.

    An exception from `attempt` counts as a failed alternative. If nothing
    is accepted the last such exception is re-raised; if there was none,
    FallbackExhausted is raised.
    """
    last_error: BaseException | None = None
    tried = 0
    for item in items:
        tried += 1
        try:
            result = await attempt(item)
        except Exception as e:
            log.debug(f"Alternative {item!r} failed: {e}")
            last_error = e
            continue
        if accept(result):
            return item, result

    if last_error is not None:
        raise last_error
    if tried == 0:
        raise FallbackExhausted("Nothing to try.")
    raise FallbackExhausted(f"None of {tried} alternative(s) was accepted.")


async def fetch_first_ok(urls: Iterable[str], fetch: Callable[[str], Awaitable[R]]) -> R:
    """Return the first successful fetch among `urls`."""
    try:
        _, result = await first_success(urls, fetch, accept=lambda _: True)
    except FallbackExhausted:
        raise FallbackExhausted("No URLs to fetch.") from None
    return result
