"""
settings.py
Process configuration. Values from config.json are defaults; environment
variables (optionally loaded from .env) override them.
"""

from __future__ import annotations
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

log = logging.getLogger("linkbot.settings")

DEFAULT_PORT            = 3000
DEFAULT_HOST            = "0.0.0.0"
DEFAULT_LINKS_FILE      = "data/links.json"
DEFAULT_LINK_TTL        = 600.0   # seconds a linking code stays valid
DEFAULT_GATEWAY_TIMEOUT = 10.0    # seconds per Discord call


@dataclass
class Settings:
    token: str = ""
    guild_id: str = ""
    secret: str = ""
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    links_file: str = DEFAULT_LINKS_FILE
    link_ttl: float = DEFAULT_LINK_TTL
    gateway_timeout: float = DEFAULT_GATEWAY_TIMEOUT

    def missing(self) -> list[str]:
        """Names of required settings that are not configured."""
        required = {"token": self.token, "guildId": self.guild_id, "secret": self.secret}
        return [name for name, value in required.items() if not value]


def resolve_log_level(name: Optional[str]) -> int:
    """Map a LOG_LEVEL name to a logging level; unknown names fall back to INFO."""
    level = logging.getLevelName((name or "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def _read_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.error("Failed to read %s: %s", path, e)
        return {}
    if not isinstance(data, dict):
        log.error("Ignoring %s: top level must be a JSON object.", path)
        return {}
    return data


def _pick(env: Mapping[str, str], env_key: str, file_cfg: dict, file_key: str, default):
    value = env.get(env_key) or file_cfg.get(file_key)
    return default if value in (None, "") else value


def _as_number(raw, cast, default, name: str):
    try:
        return cast(raw)
    except (TypeError, ValueError):
        log.error("Invalid %s value %r — using %s.", name, raw, default)
        return default


def load_settings(
    config_path: str | os.PathLike = "config.json",
    env: Optional[Mapping[str, str]] = None,
) -> Settings:
    """Build Settings from config.json and the environment."""
    if env is None:
        load_dotenv()
        env = os.environ

    file_cfg = _read_config_file(Path(config_path))

    port    = _pick(env, "PORT", file_cfg, "port", DEFAULT_PORT)
    ttl     = _pick(env, "LINK_TTL_SECONDS", file_cfg, "linkTtlSeconds", DEFAULT_LINK_TTL)
    timeout = _pick(env, "GATEWAY_TIMEOUT", file_cfg, "gatewayTimeout", DEFAULT_GATEWAY_TIMEOUT)

    return Settings(
        token=str(_pick(env, "DISCORD_TOKEN", file_cfg, "token", "")),
        guild_id=str(_pick(env, "DISCORD_GUILD_ID", file_cfg, "guildId", "")),
        secret=str(_pick(env, "BOT_SECRET", file_cfg, "secret", "")),
        port=_as_number(port, int, DEFAULT_PORT, "port"),
        host=str(_pick(env, "HTTP_HOST", file_cfg, "host", DEFAULT_HOST)),
        links_file=str(_pick(env, "LINKS_FILE", file_cfg, "linksFile", DEFAULT_LINKS_FILE)),
        link_ttl=_as_number(ttl, float, DEFAULT_LINK_TTL, "link TTL"),
        gateway_timeout=_as_number(timeout, float, DEFAULT_GATEWAY_TIMEOUT, "gateway timeout"),
    )
