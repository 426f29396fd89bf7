import pytest
from unittest.mock import AsyncMock

from marktguru.auth.base import TransientFetchError
from marktguru.auth.fallback import FallbackExhausted, fetch_first_ok, first_success


@pytest.mark.asyncio
async def test_first_success_stops_at_first_accepted():
    """Later alternatives are never attempted after a success."""
    calls = []

    async def attempt(item):
        calls.append(item)
        if item == "A":
            raise TransientFetchError("HTTP 503 for A", url="A", status=503)
        return f"body of {item}"

    item, result = await first_success(["A", "B", "C"], attempt)
    assert (item, result) == ("B", "body of B")
    assert calls == ["A", "B"]


@pytest.mark.asyncio
async def test_first_success_uses_predicate():
    """Results the predicate rejects count as failures."""
    attempt = AsyncMock(side_effect=[False, True, True])
    item, result = await first_success(["x", "y", "z"], attempt)
    assert item == "y"
    assert result is True
    assert attempt.await_count == 2


@pytest.mark.asyncio
async def test_first_success_raises_last_error():
    """When everything raises, the last error propagates."""
    async def attempt(item):
        raise TransientFetchError(f"failed {item}", url=item)

    with pytest.raises(TransientFetchError, match="failed C"):
        await first_success(["A", "B", "C"], attempt)


@pytest.mark.asyncio
async def test_first_success_nothing_accepted():
    """Rejections without errors end in FallbackExhausted."""
    with pytest.raises(FallbackExhausted, match="None of 2"):
        await first_success(["x", "y"], AsyncMock(return_value=False))


@pytest.mark.asyncio
async def test_first_success_empty():
    """An empty list fails without calling attempt."""
    attempt = AsyncMock()
    with pytest.raises(FallbackExhausted, match="Nothing to try"):
        await first_success([], attempt)
    attempt.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_first_ok_skips_failures():
    """A failing URL falls through to the next one."""
    fetched = []

    async def fetch(url):
        fetched.append(url)
        if url == "A":
            raise TransientFetchError("down", url=url)
        return url.lower()

    assert await fetch_first_ok(["A", "B", "C"], fetch) == "b"
    assert fetched == ["A", "B"]


@pytest.mark.asyncio
async def test_fetch_first_ok_accepts_empty_body():
    """An empty body is still a successful fetch."""
    assert await fetch_first_ok(["A"], AsyncMock(return_value="")) == ""


@pytest.mark.asyncio
async def test_fetch_first_ok_no_urls():
    """No URLs at all is its own error."""
    with pytest.raises(FallbackExhausted, match="No URLs to fetch"):
        await fetch_first_ok([], AsyncMock())
