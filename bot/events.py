"""
bot/events.py
Discord event handlers: on_ready and the `!link <code>` chat command that
claims a pending linking code.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from linking.resolver import parse_link_command

if TYPE_CHECKING:
    from linking.resolver import LinkResolver

log = logging.getLogger("linkbot.events")


class LinkEvents(commands.Cog):
    def __init__(self, bot: commands.Bot):
        self.bot = bot

    # ────────────────────────────────────────
    # on_ready
    # ────────────────────────────────────────

    @commands.Cog.listener()
    async def on_ready(self) -> None:
        log.info("Bot logged in as %s (ID: %s)", self.bot.user, self.bot.user.id)
        guild_id = getattr(self.bot, "guild_id", "")
        if guild_id and str(guild_id).isdigit():
            guild = self.bot.get_guild(int(guild_id))
            if guild is None:
                log.error("Configured guild %s is not visible to the bot.", guild_id)
            else:
                log.info("Serving guild: %s (%d members cached)", guild.name, len(guild.members))

    # ────────────────────────────────────────
    # !link <code>
    # ────────────────────────────────────────

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return
        code = parse_link_command(message.content)
        if code is None:
            return

        resolver: LinkResolver = self.bot.link_resolver
        result = resolver.resolve(code, str(message.author.id))

        try:
            await message.reply(result.reply)
        except discord.HTTPException as e:
            log.error("Failed to reply to link message from %s: %s", message.author.id, e)


async def setup(bot: commands.Bot) -> None:
    await bot.add_cog(LinkEvents(bot))
