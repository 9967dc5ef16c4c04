"""
main.py
Entry point for the voice link bridge.
Runs the Discord bot and the HTTP API on one event loop.
"""

from __future__ import annotations
import asyncio
import logging
import logging.handlers
import os
import sys
from pathlib import Path
from typing import Optional

import discord
from discord.ext import commands
from dotenv import load_dotenv

from settings import Settings, load_settings, resolve_log_level

# ──────────────────────────────────────────────
# Environment
# ──────────────────────────────────────────────
load_dotenv()

# ──────────────────────────────────────────────
# Logging setup
# ──────────────────────────────────────────────
LOG_FILE = Path(os.getenv("LOG_FILE", "logs/linkbot.log"))
LOG_FILE.parent.mkdir(parents=True, exist_ok=True)

log_formatter = logging.Formatter(
    "[%(asctime)s] [%(levelname)-8s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

root_logger = logging.getLogger()
root_logger.setLevel(resolve_log_level(os.getenv("LOG_LEVEL")))

# Console handler
console_handler = logging.StreamHandler(sys.stdout)
console_handler.setFormatter(log_formatter)
root_logger.addHandler(console_handler)

# Rotating file handler
file_handler = logging.handlers.RotatingFileHandler(
    LOG_FILE,
    maxBytes=5_000_000,   # 5 MB
    backupCount=3,
    encoding="utf-8",
)
file_handler.setFormatter(log_formatter)
root_logger.addHandler(file_handler)

log = logging.getLogger("linkbot.main")

# ──────────────────────────────────────────────
# Bot subclass
# ──────────────────────────────────────────────

class LinkBot(commands.Bot):
    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.members         = True
        intents.voice_states    = True
        # No prefix commands; `!link` is parsed by the events cog.
        super().__init__(command_prefix=commands.when_mentioned, intents=intents)

        from linking import IdentityMapStore, LinkResolver, PendingLinkRegistry
        from relocation import RelocationDispatcher
        from bot.gateway import VoiceGateway

        self.settings      = settings
        self.guild_id      = settings.guild_id
        self.link_store    = IdentityMapStore(settings.links_file)
        self.pending_links = PendingLinkRegistry(ttl=settings.link_ttl)
        self.link_resolver = LinkResolver(self.pending_links, self.link_store)
        self.dispatcher    = RelocationDispatcher(
            self.link_store,
            VoiceGateway(self, settings.guild_id, settings.gateway_timeout),
        )
        self._http_server = None

    async def setup_hook(self) -> None:
        """Called once after login, before starting the bot's event loop."""
        self.link_store.load()

        await self._load_ext("bot.events")

        from api import HttpServer, create_app
        app = create_app(self.settings.secret, self.pending_links, self.dispatcher)
        self._http_server = HttpServer(app, self.settings.host, self.settings.port)
        await self._http_server.start()
        log.info("Setup complete. Bot ready.")

    async def _load_ext(self, module: str) -> None:
        """Load a cog from its module, with error logging."""
        try:
            await self.load_extension(module)
            log.info("Loaded extension: %s", module)
        except Exception as e:
            log.exception("Failed to load extension %s: %s", module, e)

    async def close(self) -> None:
        log.info("Shutting down bot...")
        if self._http_server:
            await self._http_server.stop()
        await super().close()


# ──────────────────────────────────────────────
# Entry point
# ──────────────────────────────────────────────

def main(config_path: Optional[str] = None) -> None:
    settings = load_settings(config_path or os.getenv("CONFIG_FILE", "config.json"))

    for name in settings.missing():
        log.error("Missing config value: %s", name)
    if not settings.token:
        log.error("DISCORD_TOKEN is not set — cannot start.")
        sys.exit(1)

    bot = LinkBot(settings)

    try:
        asyncio.run(bot.start(settings.token))
    except KeyboardInterrupt:
        log.info("Bot interrupted by user.")
    except discord.LoginFailure as e:
        log.error("Discord login failed: %s", e)
        sys.exit(1)
    except Exception as e:
        log.exception("Unexpected error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
