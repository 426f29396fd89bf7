"""
Builds marktguru search strings from structured parts.

Observed syntax: OR, trailing * wildcards, "exact phrases" and
(grouping). AND, NOT, ~ and ^ are not supported by the API.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

QUERY_SYNTAX_HELP = "\n".join([
    "Query syntax (observed):",
    "- OR : boolean OR",
    "- * : wildcard, e.g. kell*",
    '- "..." : exact phrase',
    "- ( ... ) : grouping",
    "- NOT supported: AND, NOT, ~, ^",
    "",
    "Build mode flags:",
    "- --term <value> : add a term",
    "- --phrase <value> : add an exact phrase",
    "- --wildcard <value> : add a wildcard term (e.g. kell*)",
    "- --or <value> : add a term to an OR group",
    "- --group <value> : add a raw group (wrapped in parentheses)",
])

_WHITESPACE_RE = re.compile(r"\s")
_QUOTE_ESCAPE_RE = re.compile(r'(["\\])')


class QueryBuildError(ValueError):
    pass


@dataclass
class QueryBuildResult:
    query: str
    warnings: list[str] = field(default_factory=list)


def quote(value: str) -> str:
    return '"' + _QUOTE_ESCAPE_RE.sub(r"\\\1", value) + '"'


def normalize_term(value: str) -> Optional[str]:
    trimmed = value.strip()
    if not trimmed:
        return None
    return quote(trimmed) if _WHITESPACE_RE.search(trimmed) else trimmed


def normalize_phrase(value: str) -> Optional[str]:
    trimmed = value.strip()
    return quote(trimmed) if trimmed else None


def normalize_wildcard(value: str) -> tuple[Optional[str], Optional[str]]:
    """Returns (token, warning)."""
    trimmed = value.strip()
    if not trimmed:
        return None, None
    if _WHITESPACE_RE.search(trimmed):
        return quote(trimmed), "Wildcard contained whitespace and was quoted as a phrase."
    return trimmed, None


def normalize_group(value: str) -> Optional[str]:
    trimmed = value.strip()
    return f"({trimmed})" if trimmed else None


def build_query(
    terms: Iterable[str] = (),
    phrases: Iterable[str] = (),
    wildcards: Iterable[str] = (),
    ors: Iterable[str] = (),
    groups: Iterable[str] = (),
) -> QueryBuildResult:
    parts: list[str] = []
    warnings: list[str] = []

    parts.extend(t for t in map(normalize_term, terms or ()) if t)
    parts.extend(p for p in map(normalize_phrase, phrases or ()) if p)

    for wildcard in wildcards or ():
        token, warning = normalize_wildcard(wildcard)
        if warning:
            warnings.append(warning)
        if token:
            parts.append(token)

    or_terms = [t for t in map(normalize_term, ors or ()) if t]
    if or_terms:
        parts.append(f"({' OR '.join(or_terms)})")

    parts.extend(g for g in map(normalize_group, groups or ()) if g)

    query = " ".join(parts).strip()
    if not query:
        raise QueryBuildError(
            "No query parts provided. Use --term, --phrase, --wildcard, --or, or --group."
        )
    return QueryBuildResult(query=query, warnings=warnings)
