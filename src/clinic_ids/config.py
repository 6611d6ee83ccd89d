"""Configuration for the clinic-ids gateway.

Reads from config/clinic_ids.ini if present, environment variables override.
The obfuscation secret never lives in version control.
"""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from pathlib import Path

from clinic_ids.codec import IdentifierCodec

_CONFIG_FILE = Path(__file__).resolve().parent.parent.parent / "config" / "clinic_ids.ini"

# Used only when no secret is configured anywhere.
DEFAULT_SECRET = "default_secret_key_at_least_32_bytes_long_!!"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class GatewayConfig:
    """Gateway configuration. Immutable once loaded."""

    obfuscation_secret: str = DEFAULT_SECRET
    accept_legacy_ids: bool = True
    strict_encode: bool = False
    api_key: str = ""
    host: str = "127.0.0.1"
    port: int = 8000


def parse_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {value!r}")


def _resolve_secret(parser: configparser.ConfigParser | None) -> str:
    """First non-empty secret wins, most specific source first."""
    candidates = [
        os.getenv("CLINIC_IDS_OBFUSCATION_SECRET"),
        os.getenv("CLINIC_IDS_AUTH_SECRET"),
    ]
    if parser is not None:
        candidates.append(parser.get("codec", "secret", fallback=None))
        candidates.append(parser.get("gateway", "auth_secret", fallback=None))
    for candidate in candidates:
        if candidate:
            return candidate
    return DEFAULT_SECRET


def load_config(config_path: Path | None = None) -> GatewayConfig:
    """Load config from INI file, then override with environment variables."""
    path = config_path or _CONFIG_FILE
    kwargs: dict = {}
    parser = None

    if path.exists():
        parser = configparser.ConfigParser()
        parser.read(path)
        if parser.has_section("codec"):
            for ini_key in ("accept_legacy_ids", "strict_encode"):
                val = parser.get("codec", ini_key, fallback=None)
                if val is not None:
                    kwargs[ini_key] = parse_bool(val)
        if parser.has_section("gateway"):
            for ini_key in ("api_key", "host"):
                val = parser.get("gateway", ini_key, fallback=None)
                if val is not None:
                    kwargs[ini_key] = val
            port_str = parser.get("gateway", "port", fallback=None)
            if port_str is not None:
                kwargs["port"] = int(port_str)

    env_map = {
        "CLINIC_IDS_ACCEPT_LEGACY_IDS": "accept_legacy_ids",
        "CLINIC_IDS_STRICT_ENCODE": "strict_encode",
        "CLINIC_IDS_API_KEY": "api_key",
        "CLINIC_IDS_HOST": "host",
        "CLINIC_IDS_PORT": "port",
    }
    for env_key, config_key in env_map.items():
        val = os.getenv(env_key)
        if val is not None:
            if config_key == "port":
                kwargs[config_key] = int(val)
            elif config_key in ("accept_legacy_ids", "strict_encode"):
                kwargs[config_key] = parse_bool(val)
            else:
                kwargs[config_key] = val

    kwargs["obfuscation_secret"] = _resolve_secret(parser)
    return GatewayConfig(**kwargs)


def build_codec(config: GatewayConfig) -> IdentifierCodec:
    """Construct the single codec the application shares across requests."""
    return IdentifierCodec(
        config.obfuscation_secret,
        accept_legacy=config.accept_legacy_ids,
        strict=config.strict_encode,
    )
