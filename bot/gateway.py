"""
bot/gateway.py
Thin async wrapper over the discord.py objects the relocation dispatcher needs:
the configured guild, its members' voice state, its voice channels, and the
member move call.

Every outbound call is bounded by a timeout. Discord failures surface as
GatewayError; lookups that simply find nothing return None.
"""

from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Optional, TypeVar

import discord
from discord.ext import commands

from errors import GatewayError

log = logging.getLogger("linkbot.gateway")

T = TypeVar("T")

VOICE_CHANNEL_TYPES = (discord.VoiceChannel, discord.StageChannel)


def _snowflake(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


async def _bounded(aw: Awaitable[T], timeout: float, what: str) -> T:
    try:
        return await asyncio.wait_for(aw, timeout)
    except asyncio.TimeoutError as e:
        raise GatewayError(f"{what} timed out after {timeout:.0f}s") from e
    except (discord.HTTPException, discord.ClientException) as e:
        raise GatewayError(f"{what} failed: {e}") from e


class GuildHandle:
    """Member, channel and move operations scoped to one guild."""

    def __init__(self, guild: discord.Guild, timeout: float):
        self.guild   = guild
        self.timeout = timeout

    async def fetch_member(self, discord_id: str) -> Optional[discord.Member]:
        member_id = _snowflake(discord_id)
        if member_id is None:
            return None
        member = self.guild.get_member(member_id)
        if member is not None:
            return member
        try:
            return await _bounded(
                self.guild.fetch_member(member_id), self.timeout, f"fetch member {member_id}"
            )
        except GatewayError as e:
            if isinstance(e.__cause__, discord.NotFound):
                return None
            raise

    @staticmethod
    def in_voice(member: Optional[discord.Member]) -> bool:
        return bool(member is not None and member.voice and member.voice.channel)

    async def fetch_voice_channel(self, channel_id: str):
        """The voice-capable channel with this id, or None."""
        cid = _snowflake(channel_id)
        if cid is None:
            return None
        channel = self.guild.get_channel(cid)
        if channel is None:
            try:
                channel = await _bounded(
                    self.guild.fetch_channel(cid), self.timeout, f"fetch channel {cid}"
                )
            except GatewayError as e:
                if isinstance(e.__cause__, discord.NotFound):
                    return None
                raise
        if not isinstance(channel, VOICE_CHANNEL_TYPES):
            log.debug("Channel %s is not voice-based (%s).", cid, type(channel).__name__)
            return None
        return channel

    async def move(self, member: discord.Member, channel) -> None:
        await _bounded(
            member.move_to(channel, reason="Voice link dispatch"),
            self.timeout,
            f"move {member.id} to {channel.id}",
        )


class VoiceGateway:
    def __init__(self, bot: commands.Bot, guild_id: str, timeout: float):
        self.bot      = bot
        self.guild_id = guild_id
        self.timeout  = timeout

    async def fetch_guild(self) -> GuildHandle:
        gid = _snowflake(self.guild_id)
        if gid is None:
            raise GatewayError("guild id is not configured")

        await _bounded(self.bot.wait_until_ready(), self.timeout, "wait for gateway ready")

        guild = self.bot.get_guild(gid)
        if guild is None:
            log.warning("Guild %s not in cache — fetching over REST (no voice state).", gid)
            guild = await _bounded(self.bot.fetch_guild(gid), self.timeout, f"fetch guild {gid}")
        return GuildHandle(guild, self.timeout)
