"""
Browser-like request headers for talking to the marktguru web front door.

A randomized Chrome/desktop profile is generated per run; if generation
fails for any reason the fixed FALLBACK_HEADERS are used instead.
"""
from __future__ import annotations
import logging
import random
from types import MappingProxyType
from typing import Callable, Mapping

log = logging.getLogger("marktguru.auth.headers")

FALLBACK_HEADERS: Mapping[str, str] = MappingProxyType({
    "user-agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    ),
    "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "accept-language": "en-US,en;q=0.9",
    "accept-encoding": "gzip, deflate, br",
})

CHROME_MIN_VERSION = 110
CHROME_MAX_VERSION = 130

_MAC_VERSIONS = ["10_15_7", "13_6_1", "14_2_1", "14_5"]
_ACCEPT_LANGUAGES = [
    "en-US,en;q=0.9",
    "de-AT,de;q=0.9,en-US;q=0.8,en;q=0.7",
    "de-DE,de;q=0.9,en;q=0.8",
    "en-GB,en;q=0.9,en-US;q=0.8",
]
_NOT_A_BRAND = ['"Not_A Brand";v="8"', '"Not/A)Brand";v="24"', '"Not A(Brand";v="99"']


def generate_headers(rng: random.Random | None = None) -> dict[str, str]:
    """Build a randomized desktop Chrome (macOS) header set."""
    rng = rng or random.Random()
    major = rng.randint(CHROME_MIN_VERSION, CHROME_MAX_VERSION)
    mac = rng.choice(_MAC_VERSIONS)
    brand = rng.choice(_NOT_A_BRAND)

    return {
        "sec-ch-ua": f'{brand}, "Chromium";v="{major}", "Google Chrome";v="{major}"',
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"macOS"',
        "upgrade-insecure-requests": "1",
        "user-agent": (
            f"Mozilla/5.0 (Macintosh; Intel Mac OS X {mac}) "
            f"AppleWebKit/537.36 (KHTML, like Gecko) "
            f"Chrome/{major}.0.0.0 Safari/537.36"
        ),
        "accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "sec-fetch-site": "none",
        "sec-fetch-mode": "navigate",
        "sec-fetch-user": "?1",
        "sec-fetch-dest": "document",
        "accept-encoding": "gzip, deflate, br",
        "accept-language": rng.choice(_ACCEPT_LANGUAGES),
    }


def get_header_profile(
    generator: Callable[[], Mapping[str, str]] | None = generate_headers,
) -> Mapping[str, str]:
    """Return a read-only header mapping. Never raises."""
    if generator is not None:
        try:
            headers = dict(generator())
            if headers:
                return MappingProxyType(headers)
            log.debug("Header generator returned nothing, using fallback")
        except Exception as e:
            log.debug(f"Header generator failed ({e}), using fallback")
    return FALLBACK_HEADERS
