"""
Text scanners used by the discovery pipeline.

  - extract_script_urls: absolute <script src> URLs from an HTML page
  - CandidateExtractor: strings that look like API keys, found by a list
    of independent matchers whose results are unioned

Matchers are plain functions `text -> iterable[str]`. New heuristics are
added with @register_matcher and need no change to the orchestrator.
"""
from __future__ import annotations
import re
from typing import Callable, Iterable, Optional

from .base import BASE_URL, CandidateSet, TokenShape

Matcher = Callable[[str], Iterable[str]]

SCRIPT_SRC_RE = re.compile(r"""<script[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)
HEADER_KEY_RE = re.compile(r"""x-apikey\s*['"]?\s*[:=]\s*['"]([^'"]{10,})['"]""", re.IGNORECASE)
FIELD_KEY_RE = re.compile(r"""apiKey\s*[:=]\s*['"]([^'"]{10,})['"]""", re.IGNORECASE)


# ──────────────────────────────
#  Script URLs
# ──────────────────────────────
def normalize_script_url(src: str, origin: str = BASE_URL) -> Optional[str]:
    """Make a script src absolute, or return None if it can't be used."""
    if src.startswith("//"):
        return f"https:{src}"
    if src.startswith("/"):
        return f"{origin}{src}"
    if src.startswith("http"):
        return src
    return None


def extract_script_urls(html: str, origin: str = BASE_URL) -> list[str]:
    urls: dict[str, None] = {}
    for match in SCRIPT_SRC_RE.finditer(html):
        url = normalize_script_url(match.group(1), origin)
        if url:
            urls.setdefault(url, None)
    return list(urls)


# ──────────────────────────────
#  Matcher registry
# ──────────────────────────────
_MATCHERS: list[Matcher] = []


def register_matcher(matcher: Matcher) -> Matcher:
    """Decorator to append a matcher to the default registry."""
    global _MATCHERS
    _MATCHERS = [m for m in _MATCHERS if m.__name__ != matcher.__name__]
    _MATCHERS.append(matcher)
    return matcher


def default_matchers() -> list[Matcher]:
    return list(_MATCHERS)


@register_matcher
def header_literal(text: str) -> Iterable[str]:
    """`x-apikey: "..."` style header defaults."""
    return (m.group(1) for m in HEADER_KEY_RE.finditer(text))


@register_matcher
def named_field(text: str) -> Iterable[str]:
    """`apiKey: "..."` / `apiKey = "..."` config literals."""
    return (m.group(1) for m in FIELD_KEY_RE.finditer(text))


def opaque_token_matcher(shape: TokenShape = TokenShape()) -> Matcher:
    """Build a matcher for padded base64-looking runs of a given length."""
    pattern = re.compile(rf"[A-Za-z0-9+/]{{{shape.scan_min},{shape.scan_max}}}={{0,2}}")

    def opaque_token(text: str) -> Iterable[str]:
        for match in pattern.finditer(text):
            value = match.group(0)
            if not shape.keep_min <= len(value) <= shape.keep_max:
                continue
            if shape.require_padding and "=" not in value:
                continue
            yield value

    return opaque_token


register_matcher(opaque_token_matcher())


# ──────────────────────────────
#  Extractor
# ──────────────────────────────
class CandidateExtractor:
    def __init__(self, matchers: Optional[list[Matcher]] = None):
        self.matchers = list(matchers) if matchers is not None else default_matchers()

    def find(self, text: str) -> list[str]:
        """Unique candidates in `text`, in matcher order then match order."""
        found = CandidateSet()
        for matcher in self.matchers:
            found.update(matcher(text))
        return found.to_list()

    def scan_into(self, text: str, candidates: CandidateSet) -> int:
        """Add candidates from `text` to `candidates`; returns how many were new."""
        return candidates.update(self.find(text))
