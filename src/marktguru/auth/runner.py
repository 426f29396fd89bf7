"""
Discovery engine: fetches an entry page, collects key candidates from it
and its scripts, then validates candidates against the live API.

Usage:
    async with KeyDiscovery() as discovery:
        key = await discovery.run(progress=print)
"""
from __future__ import annotations
import logging
from typing import Awaitable, Callable, Mapping, Optional

from .base import (
    CandidateSet, DiscoverySettings, EntryFetchError, ExhaustionError,
    FetchResult, NoScriptsError, TransientFetchError,
)
from .extractors import CandidateExtractor, extract_script_urls
from .fallback import FallbackExhausted, fetch_first_ok, first_success
from .fetcher import Fetcher
from .headers import get_header_profile
from .validator import validate_key

log = logging.getLogger("marktguru.auth")

ProgressLogger = Callable[[str], None]
Validator = Callable[[Fetcher, str], Awaitable[bool]]


class KeyDiscovery:
    def __init__(
        self,
        *,
        settings: DiscoverySettings | None = None,
        fetcher: Fetcher | None = None,
        extractor: CandidateExtractor | None = None,
        header_provider: Callable[[], Mapping[str, str]] = get_header_profile,
        validator: Optional[Validator] = None,
    ):
        self.settings = settings or DiscoverySettings()
        self._owns_fetcher = fetcher is None
        self.fetcher = fetcher or Fetcher(timeout=self.settings.timeout)
        self.extractor = extractor or CandidateExtractor()
        self.header_provider = header_provider
        self.validator = validator or self._validate

    async def close(self):
        if self._owns_fetcher:
            await self.fetcher.close()

    async def __aenter__(self) -> "KeyDiscovery":
        return self

    async def __aexit__(self, *exc_info):
        await self.close()

    async def _validate(self, fetcher: Fetcher, candidate: str) -> bool:
        return await validate_key(fetcher, candidate, zip_code=self.settings.validation_zip_code)

    # ── states ──────────────────

    async def fetch_entry(self, headers: Mapping[str, str]) -> FetchResult:
        async def _fetch(url: str) -> FetchResult:
            log.debug(f"Trying entry URL {url}")
            return await self.fetcher.fetch(url, headers=headers)

        try:
            return await fetch_first_ok(self.settings.entry_urls, _fetch)
        except (TransientFetchError, FallbackExhausted) as e:
            raise EntryFetchError(f"Could not reach marktguru.at: {e}") from e

    def discover_scripts(self, html: str) -> list[str]:
        scripts = extract_script_urls(html, self.settings.base_url)[: self.settings.max_scripts]
        if not scripts:
            raise NoScriptsError("No scripts found to scan for API keys.")
        return scripts

    async def scan_scripts(
        self, scripts: list[str], headers: Mapping[str, str], candidates: CandidateSet,
    ):
        for url in scripts:
            try:
                text = await self.fetcher.get_text(url, headers=headers)
            except TransientFetchError as e:
                log.debug(f"Skipping script {url}: {e}")
                continue
            added = self.extractor.scan_into(text, candidates)
            if added:
                log.info(f"{added} new candidate(s) in {url}")

    async def validate_candidates(self, candidates: CandidateSet) -> str:
        async def _check(candidate: str) -> bool:
            try:
                return await self.validator(self.fetcher, candidate)
            except TransientFetchError as e:
                log.debug(f"Validation of {candidate[:6]}… failed: {e}")
                return False

        try:
            key, _ = await first_success(candidates, _check)
        except FallbackExhausted:
            raise ExhaustionError(
                "Failed to capture a valid API key. The site may have changed."
            ) from None
        return key

    # ── pipeline ──────────────────

    async def run(self, progress: Optional[ProgressLogger] = None) -> str:
        """Run every state in order and return the first validated key."""
        def report(message: str):
            log.info(message)
            if progress:
                progress(message)

        headers = self.header_provider()

        report("→ Fetching entry HTML...")
        entry = await self.fetch_entry(headers)
        report(f"✓ Using entry URL: {entry.url}")

        candidates = CandidateSet()
        self.extractor.scan_into(entry.text, candidates)
        log.info(f"{len(candidates)} candidate(s) on entry page")

        scripts = self.discover_scripts(entry.text)
        report(f"→ Scanning {len(scripts)} script(s)...")
        await self.scan_scripts(scripts, headers, candidates)

        report(f"→ Validating {len(candidates)} candidate(s)...")
        return await self.validate_candidates(candidates)


async def discover_api_key(
    progress: Optional[ProgressLogger] = None,
    *,
    settings: DiscoverySettings | None = None,
) -> str:
    """Discover and validate an API key. Raises DiscoveryError on failure."""
    async with KeyDiscovery(settings=settings) as discovery:
        return await discovery.run(progress=progress)
