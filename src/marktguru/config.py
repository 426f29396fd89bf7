"""
Persistent settings for the CLI: the discovered API key and a default ZIP
code, stored as JSON under ~/.marktguru (or $MARKTGURU_CONFIG_DIR).
"""
from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

log = logging.getLogger("marktguru.config")

DEFAULT_ZIP_CODE = "1010"  # Vienna
CONFIG_DIR_ENV = "MARKTGURU_CONFIG_DIR"
CONFIG_FILENAME = "config.json"


def default_config_path() -> Path:
    config_dir = os.getenv(CONFIG_DIR_ENV) or Path.home() / ".marktguru"
    return Path(config_dir) / CONFIG_FILENAME


@dataclass
class Config:
    config_path: Path
    api_key: Optional[str] = None
    zip_code: Optional[str] = None

    @property
    def effective_zip_code(self) -> str:
        return self.zip_code or DEFAULT_ZIP_CODE


class ConfigStore:
    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path else default_config_path()

    def _read_raw(self) -> dict:
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            log.warning(f"Ignoring unreadable config at {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> Config:
        data = self._read_raw()
        return Config(
            config_path=self.path,
            api_key=data.get("apiKey") or None,
            zip_code=data.get("zipCode") or None,
        )

    def save(self, *, api_key: Optional[str] = None, zip_code: Optional[str] = None) -> Config:
        """Merge the given fields into the stored config."""
        data = self._read_raw()
        data.pop("configPath", None)
        if api_key is not None:
            data["apiKey"] = api_key
        if zip_code is not None:
            data["zipCode"] = zip_code

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        log.debug(f"Saved config to {self.path}")
        return self.load()
