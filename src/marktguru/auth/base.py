"""
Core types for the API key discovery pipeline.

A run moves through:
  FETCH_ENTRY → EXTRACT_ENTRY_CANDIDATES → DISCOVER_SCRIPTS
  → SCAN_SCRIPT* → VALIDATE_CANDIDATES → success | failure
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

BASE_URL = "https://www.marktguru.at"

# ──────────────────────────────
#  Errors
# ──────────────────────────────
class DiscoveryError(Exception):
    """Base class for everything the discovery pipeline raises."""


class TransientFetchError(DiscoveryError):
    """A single GET failed: timeout, network error or non-2xx status."""

    def __init__(self, message: str, *, url: str, status: Optional[int] = None):
        super().__init__(message)
        self.url = url
        self.status = status


class FatalDiscoveryError(DiscoveryError):
    """The site could not be mined at all."""


class EntryFetchError(FatalDiscoveryError):
    pass


class NoScriptsError(FatalDiscoveryError):
    pass


class ExhaustionError(DiscoveryError):
    """Every candidate was tried and none was accepted by the API."""


# ──────────────────────────────
#  Settings
# ──────────────────────────────
@dataclass(frozen=True)
class TokenShape:
    """Length/padding thresholds for the opaque-token heuristic."""
    scan_min: int = 40
    scan_max: int = 80
    keep_min: int = 40
    keep_max: int = 60
    require_padding: bool = True


@dataclass(frozen=True)
class DiscoverySettings:
    base_url: str = BASE_URL
    entry_paths: tuple[str, ...] = (
        "/", "/search", "/search?q=test", "/suche", "/suche?q=test",
    )
    timeout: float = 15.0
    max_scripts: int = 20
    validation_zip_code: str = "1010"

    @property
    def entry_urls(self) -> list[str]:
        return [f"{self.base_url}{path}" for path in self.entry_paths]


# ──────────────────────────────
#  Fetch output
# ──────────────────────────────
@dataclass
class FetchResult:
    url: str
    text: str


# ──────────────────────────────
#  Candidate set (insertion-ordered, unique)
# ──────────────────────────────
@dataclass
class CandidateSet:
    _items: dict[str, None] = field(default_factory=dict)

    def add(self, candidate: str) -> bool:
        """Add a candidate; returns False if it was already present."""
        if candidate in self._items:
            return False
        self._items[candidate] = None
        return True

    def update(self, candidates: Iterable[str]) -> int:
        return sum(1 for c in candidates if self.add(c))

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> list[str]:
        return list(self._items)
