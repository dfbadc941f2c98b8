"""Persisted plugin configuration and process settings."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path

from dotenv import load_dotenv

from .errors import ConfigurationError
from .paths import Vault, parse_vault_path

logger = logging.getLogger(__name__)

load_dotenv()

DEFAULT_CONFIG_FILE = "tmdb_notes_config.json"


@dataclass(frozen=True, slots=True)
class Configuration:
    """Values read by the search and note components at call time."""

    api_key: str = ""
    result_language: str = "pt-BR"
    notes_folder: str = ""


FIELD_NAMES = tuple(f.name for f in fields(Configuration))


class ConfigStore:
    """Holds the single :class:`Configuration` and writes it to a JSON file."""

    def __init__(self, path: Path, defaults: Configuration | None = None) -> None:
        self.path = path
        self._defaults = defaults or Configuration()
        self._config = self._defaults

    @property
    def config(self) -> Configuration:
        return self._config

    def snapshot(self) -> Configuration:
        return self._config

    def load(self) -> Configuration:
        """Overlay persisted values onto the defaults.

        A missing file is the normal first-run case. Keys that are not
        configuration fields are ignored.
        """

        merged = asdict(self._defaults)
        if self.path.exists():
            try:
                saved = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError):
                logger.warning("Could not read %s, using defaults", self.path, exc_info=True)
                saved = {}
            if isinstance(saved, dict):
                merged.update(
                    {k: str(v) for k, v in saved.items() if k in FIELD_NAMES and v is not None}
                )
        self._config = Configuration(**merged)
        return self._config

    def set(self, field: str, value: str) -> Configuration:
        if field not in FIELD_NAMES:
            raise ConfigurationError(f"Unknown setting: {field!r}")
        self._config = replace(self._config, **{field: value})
        return self._config

    def save(self) -> None:
        """Write the full configuration snapshot."""

        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(asdict(self._config), indent=2), encoding="utf-8")
        logger.debug("Saved configuration to %s", self.path)

    def update(self, field: str, value: str) -> Configuration:
        """Set *field* and persist it; the previous value is restored if the write fails."""

        previous = self._config
        config = self.set(field, value)
        try:
            self.save()
        except OSError:
            self._config = previous
            raise
        return config


@dataclass(slots=True)
class Settings:
    vault: Vault
    host: str
    port: int
    shared_secret: str | None
    log_level: str
    config_path: Path
    defaults: Configuration


def load_settings() -> Settings:
    """Load process settings from environment variables."""

    vault = parse_vault_path(os.environ.get("VAULT_PATH", ""))

    host = os.environ.get("HOST", "0.0.0.0")  # noqa: S104 (intentional bind)
    port = int(os.environ.get("PORT", "8000"))
    shared_secret = os.environ.get("MCP_SHARED_SECRET")

    log_level = os.environ.get("LOG_LEVEL", "info").upper()
    logging.basicConfig(level=getattr(logging, log_level, logging.INFO))

    config_path = Path(os.environ.get("TMDB_NOTES_CONFIG", DEFAULT_CONFIG_FILE)).expanduser()
    defaults = Configuration(
        api_key=os.environ.get("TMDB_API_KEY", ""),
        result_language=os.environ.get("TMDB_LANGUAGE", "pt-BR"),
    )

    return Settings(
        vault=vault,
        host=host,
        port=port,
        shared_secret=shared_secret,
        log_level=log_level,
        config_path=config_path,
        defaults=defaults,
    )
