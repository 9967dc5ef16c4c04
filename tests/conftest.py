"""
Shared fixtures: on-disk identity store, pending registry, and a fake guild
handle standing in for bot/gateway.py.
"""
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from linking import IdentityMapStore, LinkResolver, PendingLinkRegistry
from relocation import RelocationDispatcher


class FakeGuild:
    """Guild handle with members in voice and a set of voice channels."""

    def __init__(self, voice=None, channels=None):
        self.voice = dict(voice or {})                      # discord_id → channel id
        self.channels = {cid: SimpleNamespace(id=cid) for cid in (channels or [])}
        self.fetch_member = AsyncMock(side_effect=self._member)
        self.fetch_voice_channel = AsyncMock(side_effect=self._channel)
        self.move = AsyncMock(side_effect=self._move)

    async def _member(self, discord_id):
        return SimpleNamespace(id=discord_id, channel_id=self.voice.get(discord_id))

    async def _channel(self, channel_id):
        return self.channels.get(channel_id)

    async def _move(self, member, channel):
        self.voice[member.id] = channel.id

    @staticmethod
    def in_voice(member):
        return member is not None and member.channel_id is not None


@pytest.fixture
def store(tmp_path):
    s = IdentityMapStore(tmp_path / "data" / "links.json")
    s.load()
    return s


@pytest.fixture
def pending():
    return PendingLinkRegistry()


@pytest.fixture
def resolver(pending, store):
    return LinkResolver(pending, store)


@pytest.fixture
def guild():
    return FakeGuild(
        voice={"disc-99": "voice-3", "disc-7": "voice-3", "disc-idle": None},
        channels=["voice-3", "voice-5", "voice-6"],
    )


@pytest.fixture
def gateway(guild):
    gw = MagicMock()
    gw.fetch_guild = AsyncMock(return_value=guild)
    return gw


@pytest.fixture
def dispatcher(store, gateway):
    return RelocationDispatcher(store, gateway)
