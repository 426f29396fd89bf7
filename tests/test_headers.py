import random

import pytest

from marktguru.auth.headers import (
    CHROME_MAX_VERSION, CHROME_MIN_VERSION, FALLBACK_HEADERS,
    generate_headers, get_header_profile,
)


def test_generated_profile_looks_like_desktop_chrome():
    """The generated profile is a desktop Chrome on macOS."""
    headers = get_header_profile()
    assert "Chrome/" in headers["user-agent"]
    assert "Macintosh" in headers["user-agent"]
    assert headers["sec-ch-ua-mobile"] == "?0"
    for name in ("accept", "accept-language", "accept-encoding"):
        assert headers[name]


def test_generated_version_in_range():
    """Chrome versions stay inside the configured range."""
    for seed in range(20):
        headers = generate_headers(random.Random(seed))
        major = int(headers["user-agent"].split("Chrome/")[1].split(".")[0])
        assert CHROME_MIN_VERSION <= major <= CHROME_MAX_VERSION
        assert f'v="{major}"' in headers["sec-ch-ua"]


def test_profile_is_read_only():
    """Profiles can't be modified after creation."""
    headers = get_header_profile()
    with pytest.raises(TypeError):
        headers["user-agent"] = "curl/8.0"


def test_fallback_when_generator_fails():
    """A raising generator selects the static headers."""
    def broken():
        raise RuntimeError("no generator available")

    assert get_header_profile(broken) is FALLBACK_HEADERS


def test_fallback_when_generator_returns_nothing():
    """An empty generator result selects the static headers."""
    assert get_header_profile(lambda: {}) is FALLBACK_HEADERS


def test_fallback_without_generator():
    """No generator means the static headers."""
    headers = get_header_profile(None)
    assert headers is FALLBACK_HEADERS
    assert "Chrome/120" in headers["user-agent"]
