"""`marktguru login`: discover an API key and store it."""
from __future__ import annotations
import json
import logging
import sys
from typing import Awaitable, Callable, Optional

from ..auth.base import DiscoveryError
from ..auth.runner import ProgressLogger, discover_api_key
from ..config import ConfigStore

log = logging.getLogger("marktguru.cli")

Discover = Callable[[Optional[ProgressLogger]], Awaitable[str]]


def output(success: bool, *, api_key: str | None = None, error: str | None = None, json_output: bool = False):
    if json_output:
        result = {"success": success}
        if api_key:
            result["apiKey"] = api_key
        if error:
            result["error"] = error
        print(json.dumps(result))
    elif success:
        print("\n✓ API key extracted and saved!")
        print("  Key:", api_key[:15] + "...")
    else:
        print("\n✗", error, file=sys.stderr)


async def login(
    store: ConfigStore,
    *,
    json_output: bool = False,
    discover: Optional[Discover] = None,
) -> int:
    progress = None if json_output else print
    if progress:
        progress("Extracting Marktguru API key (HTTP-only)...\n")

    try:
        api_key = await (discover or discover_api_key)(progress)
    except DiscoveryError as e:
        log.debug("Discovery failed", exc_info=True)
        output(False, error=str(e), json_output=json_output)
        return 1

    store.save(api_key=api_key)
    output(True, api_key=api_key, json_output=json_output)
    return 0
