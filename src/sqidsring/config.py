"""Configuration for the sqidsring codec and token gateway.

Reads from config/sqidsring.ini if present, environment variables override.
The alphabet is effectively a secret: tokens are only as opaque as the
alphabet shuffle. Keep it out of version control.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "sqidsring.ini"


@dataclass(frozen=True)
class SqidsRingConfig:
    """Codec and gateway configuration. Immutable once loaded.

    Empty alphabet, zero min_length and a None blocklist leave the Sqids
    defaults in place. An empty blocklist tuple disables the blocklist.
    """

    alphabet: str = ""
    min_length: int = 0
    blocklist: tuple[str, ...] | None = None
    api_key: str = ""
    host: str = "127.0.0.1"
    port: int = 8000


def _split_words(raw: str) -> tuple[str, ...]:
    return tuple(word.strip() for word in raw.split(",") if word.strip())


def load_config(config_path: Path | None = None) -> SqidsRingConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        if parser.has_section("sqids"):
            val = parser.get("sqids", "alphabet", fallback=None)
            if val is not None:
                kwargs["alphabet"] = val
            val = parser.get("sqids", "min_length", fallback=None)
            if val is not None:
                kwargs["min_length"] = int(val)
            val = parser.get("sqids", "blocklist", fallback=None)
            if val is not None:
                kwargs["blocklist"] = _split_words(val)
        if parser.has_section("gateway"):
            for key in ("api_key", "host"):
                val = parser.get("gateway", key, fallback=None)
                if val is not None:
                    kwargs[key] = val
            port_str = parser.get("gateway", "port", fallback=None)
            if port_str is not None:
                kwargs["port"] = int(port_str)

    env_map = {
        "SQIDSRING_ALPHABET": "alphabet",
        "SQIDSRING_MIN_LENGTH": "min_length",
        "SQIDSRING_BLOCKLIST": "blocklist",
        "SQIDSRING_API_KEY": "api_key",
        "SQIDSRING_HOST": "host",
        "SQIDSRING_PORT": "port",
    }
    for env_key, config_key in env_map.items():
        val = os.getenv(env_key)
        if val is None:
            continue
        if config_key in ("min_length", "port"):
            kwargs[config_key] = int(val)
        elif config_key == "blocklist":
            kwargs[config_key] = _split_words(val)
        else:
            kwargs[config_key] = val

    return SqidsRingConfig(**kwargs)
