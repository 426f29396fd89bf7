"""
Client for the marktguru offer search API plus the display helpers the
CLI uses on its results.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .auth.base import TransientFetchError
from .auth.fetcher import Fetcher
from .config import DEFAULT_ZIP_CODE

log = logging.getLogger("marktguru.api")

API_BASE = "https://api.marktguru.at/api/v1"
SEARCH_URL = f"{API_BASE}/offers/search"
DEFAULT_SEARCH_LIMIT = 20


class CatalogError(Exception):
    pass


class MissingApiKeyError(CatalogError):
    pass


class ApiKeyInvalidError(CatalogError):
    pass


# ──────────────────────────────
#  Response shapes
# ──────────────────────────────
@dataclass
class ValidityDate:
    from_: str
    to: str

    @classmethod
    def from_dict(cls, d: dict) -> "ValidityDate":
        return cls(from_=d.get("from", ""), to=d.get("to", ""))


@dataclass
class Offer:
    id: int
    price: float
    old_price: Optional[float]
    description: str
    product_id: int
    product_name: str
    brand: Optional[str] = None
    advertisers: list[str] = field(default_factory=list)
    validity_dates: list[ValidityDate] = field(default_factory=list)
    reference_price: float = 0.0
    unit: Optional[str] = None
    volume: Optional[float] = None
    quantity: Optional[float] = None
    external_url: Optional[str] = None

    @classmethod
    def from_dict(cls, d: dict) -> "Offer":
        product = d.get("product") or {}
        brand = d.get("brand") or {}
        unit = d.get("unit") or {}
        return cls(
            id=d.get("id", 0),
            price=d.get("price", 0.0),
            old_price=d.get("oldPrice"),
            description=d.get("description") or "",
            product_id=product.get("id", 0),
            product_name=product.get("name", ""),
            brand=brand.get("name"),
            advertisers=[a.get("name", "") for a in d.get("advertisers") or []],
            validity_dates=[ValidityDate.from_dict(v) for v in d.get("validityDates") or []],
            reference_price=d.get("referencePrice") or 0.0,
            unit=unit.get("shortName"),
            volume=d.get("volume"),
            quantity=d.get("quantity"),
            external_url=d.get("externalUrl"),
        )

    @property
    def retailer(self) -> str:
        return self.advertisers[0] if self.advertisers else "Unknown"


@dataclass
class FilterEntry:
    id: int
    name: str
    results_count: int

    @classmethod
    def from_dict(cls, d: dict) -> "FilterEntry":
        return cls(id=d.get("id", 0), name=d.get("name", ""), results_count=d.get("resultsCount", 0))


@dataclass
class SearchResult:
    total_results: int
    results: list[Offer] = field(default_factory=list)
    retailers: list[FilterEntry] = field(default_factory=list)
    brands: list[FilterEntry] = field(default_factory=list)
    categories: list[FilterEntry] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: dict) -> "SearchResult":
        filters = d.get("filters") or {}
        return cls(
            total_results=d.get("totalResults", 0),
            results=[Offer.from_dict(o) for o in d.get("results") or []],
            retailers=[FilterEntry.from_dict(f) for f in filters.get("retailers") or []],
            brands=[FilterEntry.from_dict(f) for f in filters.get("brands") or []],
            categories=[FilterEntry.from_dict(f) for f in filters.get("categories") or []],
        )


# ──────────────────────────────
#  Requests
# ──────────────────────────────
def search_params(
    query: str,
    *,
    zip_code: str = DEFAULT_ZIP_CODE,
    limit: int = DEFAULT_SEARCH_LIMIT,
    offset: int = 0,
    retailer_id: Optional[int] = None,
) -> dict[str, str]:
    params = {
        "as": "web",
        "q": query,
        "limit": str(limit),
        "offset": str(offset),
        "zipCode": zip_code,
    }
    if retailer_id:
        params["retailerIds"] = str(retailer_id)
    return params


def api_headers(api_key: str) -> dict[str, str]:
    return {"x-apikey": api_key, "accept": "application/json"}


async def search(
    fetcher: Fetcher,
    api_key: Optional[str],
    query: str,
    *,
    zip_code: Optional[str] = None,
    limit: int = DEFAULT_SEARCH_LIMIT,
    offset: int = 0,
    retailer_id: Optional[int] = None,
    url: str = SEARCH_URL,
) -> SearchResult:
    if not api_key:
        raise MissingApiKeyError("No API key configured. Run 'marktguru login' first.")

    params = search_params(
        query,
        zip_code=zip_code or DEFAULT_ZIP_CODE,
        limit=limit,
        offset=offset,
        retailer_id=retailer_id,
    )
    log.debug(f"Searching offers: {params}")
    try:
        data = await fetcher.get_json(url, headers=api_headers(api_key), params=params)
    except TransientFetchError as e:
        if e.status == 401:
            raise ApiKeyInvalidError(
                "API key invalid or expired. Run 'marktguru login' to refresh."
            ) from e
        if e.status is not None:
            raise CatalogError(f"API error: {e}") from e
        raise CatalogError(str(e)) from e

    if not isinstance(data, dict):
        raise CatalogError("API error: unexpected response shape")
    return SearchResult.from_dict(data)


# ──────────────────────────────
#  Formatting
# ──────────────────────────────
def format_price(price: float) -> str:
    return f"€{price:.2f}"


def format_discount(price: float, old_price: Optional[float]) -> str:
    if not old_price or old_price <= price:
        return ""
    return f"-{discount_percent(price, old_price)}%"


def discount_percent(price: float, old_price: Optional[float]) -> Optional[int]:
    if not old_price or old_price <= price:
        return None
    # Math.round semantics, not banker's rounding
    return int((1 - price / old_price) * 100 + 0.5)


def parse_date(value: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_validity(dates: list[ValidityDate], now: Optional[datetime] = None) -> str:
    if not dates:
        return ""
    to = parse_date(dates[0].to)
    if to is None:
        return ""
    now = now or datetime.now(timezone.utc)
    seconds = (to - now).total_seconds()
    days_left = -int(-seconds // 86400)
    if days_left < 0:
        return "expired"
    if days_left == 0:
        return "today"
    if days_left == 1:
        return "1 day left"
    return f"{days_left} days left"


def expiry_date(offer: Offer) -> str:
    if not offer.validity_dates:
        return ""
    to = parse_date(offer.validity_dates[0].to)
    if to is None:
        return ""
    return to.astimezone(timezone.utc).date().isoformat()


def simplify_offer(offer: Offer) -> dict[str, Any]:
    title = " - ".join(p for p in (offer.brand, offer.product_name, offer.description) if p)
    simple: dict[str, Any] = {
        "title": title,
        "price": offer.price,
        "retailer": offer.retailer,
        "expires": expiry_date(offer),
        "discountPercent": discount_percent(offer.price, offer.old_price),
    }
    if offer.external_url:
        simple["externalUrl"] = offer.external_url
    return simple


def format_offer_text(offer: Offer, now: Optional[datetime] = None) -> str:
    lines = []
    brand = f"[{offer.brand}]" if offer.brand else ""
    lines.append(f"{offer.product_name} {brand}".strip())

    discount = format_discount(offer.price, offer.old_price)
    if discount:
        price_info = f"{format_price(offer.price)} (was {format_price(offer.old_price)}) {discount}"
    else:
        price_info = format_price(offer.price)
    unit_info = ""
    if offer.volume and offer.unit:
        unit_info = f" · {format_price(offer.reference_price)}/{offer.unit}"
    lines.append(f"  💰 {price_info}{unit_info}")

    if offer.description:
        lines.append(f"  📦 {offer.description}")

    lines.append(f"  🏪 {offer.retailer} · {format_validity(offer.validity_dates, now)}")

    if offer.external_url:
        lines.append(f"  🔗 {offer.external_url}")
    return "\n".join(lines)


def format_results_text(result: SearchResult, query: str, now: Optional[datetime] = None) -> str:
    lines = [f'Found {result.total_results} offers for "{query}":\n']

    if not result.results:
        lines.append("No offers found.")
        return "\n".join(lines)

    for offer in result.results:
        lines.append(format_offer_text(offer, now))
        lines.append("")

    if result.retailers:
        top = ", ".join(f"{r.name} ({r.results_count})" for r in result.retailers[:5])
        lines.append(f"📍 Retailers: {top}")
    return "\n".join(lines)
