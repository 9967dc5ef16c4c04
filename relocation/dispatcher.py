"""
relocation/dispatcher.py

Moves linked players' Discord voice sessions into a target voice channel,
one at a time or as a batch.

Per move the steps are, in order:
  1. uuid → Discord ID          (missing → NOT_LINKED, no Discord call)
  2. member's live voice state  (absent  → NOT_IN_VOICE)
  3. target channel             (absent / not voice → INVALID_CHANNEL)
  4. move                       (Discord failure → ERROR)

A batch never aborts on a bad item: every item lands in exactly one tally
bucket. Only failing to get the guild handle at all fails the whole batch.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Protocol

from errors import DispatchFailedError, GatewayError, MissingFieldsError, MissingMovesError
from linking.store import IdentityMapStore

log = logging.getLogger("linkbot.dispatcher")


class MoveOutcome(Enum):
    MOVED           = "moved"
    NOT_LINKED      = "notLinked"
    NOT_IN_VOICE    = "notInVoice"
    INVALID_CHANNEL = "invalidChannel"
    ERROR           = "errors"
    SKIPPED         = "skipped"


class Gateway(Protocol):
    async def fetch_guild(self) -> Any: ...


@dataclass
class MoveRequest:
    uuid: str
    channel_id: str

    @classmethod
    def from_payload(cls, item: Any) -> Optional["MoveRequest"]:
        """Build from a {uuid, channelId} JSON object; None if malformed."""
        if not isinstance(item, dict):
            return None
        uuid, channel_id = item.get("uuid"), item.get("channelId")
        if not uuid or not channel_id:
            return None
        return cls(uuid=str(uuid), channel_id=str(channel_id))


@dataclass
class DispatchTally:
    moved: int = 0
    notLinked: int = 0
    notInVoice: int = 0
    invalidChannel: int = 0
    skipped: int = 0
    errors: int = 0

    def record(self, outcome: MoveOutcome) -> None:
        setattr(self, outcome.value, getattr(self, outcome.value) + 1)

    @property
    def total(self) -> int:
        return (self.moved + self.notLinked + self.notInVoice
                + self.invalidChannel + self.skipped + self.errors)

    def to_dict(self) -> dict[str, int]:
        return {
            "moved":          self.moved,
            "notLinked":      self.notLinked,
            "notInVoice":     self.notInVoice,
            "invalidChannel": self.invalidChannel,
            "skipped":        self.skipped,
            "errors":         self.errors,
        }


_MISS = object()


@dataclass
class _ChannelCache:
    """Per-dispatch channel lookups, including channels that were not found."""
    handle: Any
    lookups: int = 0
    _seen: dict[str, Any] = field(default_factory=dict)

    async def get(self, channel_id: str):
        cached = self._seen.get(channel_id, _MISS)
        if cached is not _MISS:
            return cached
        self.lookups += 1
        channel = await self.handle.fetch_voice_channel(channel_id)
        self._seen[channel_id] = channel
        return channel


class RelocationDispatcher:
    def __init__(self, store: IdentityMapStore, gateway: Gateway):
        self.store   = store
        self.gateway = gateway

    async def move_one(self, uuid: Optional[str], channel_id: Optional[str]) -> MoveOutcome:
        """Move a single linked player. Raises MissingFieldsError if either field is absent."""
        if not uuid or not channel_id:
            raise MissingFieldsError("uuid and channelId are required")
        request = MoveRequest(uuid=str(uuid), channel_id=str(channel_id))

        if self.store.get(request.uuid) is None:
            return MoveOutcome.NOT_LINKED

        try:
            handle = await self.gateway.fetch_guild()
        except GatewayError as e:
            log.error("Move error for %s: %s", request.uuid, e)
            return MoveOutcome.ERROR
        except Exception:
            log.exception("Move error for %s", request.uuid)
            return MoveOutcome.ERROR

        return await self._relocate(handle, request, _ChannelCache(handle))

    async def dispatch(self, moves: Any) -> DispatchTally:
        """Run a batch of moves sequentially and return the outcome tally."""
        if not isinstance(moves, list) or not moves:
            raise MissingMovesError("moves must be a non-empty list")

        try:
            handle = await self.gateway.fetch_guild()
        except Exception as e:
            log.exception("Dispatch aborted: guild unavailable")
            raise DispatchFailedError(str(e)) from e

        tally    = DispatchTally()
        channels = _ChannelCache(handle)

        for index, item in enumerate(moves):
            request = MoveRequest.from_payload(item)
            if request is None:
                log.debug("Dispatch item %d malformed — skipped.", index)
                tally.record(MoveOutcome.SKIPPED)
                continue
            tally.record(await self._relocate(handle, request, channels))

        log.info(
            "Dispatch of %d: moved=%d notLinked=%d notInVoice=%d invalidChannel=%d "
            "skipped=%d errors=%d (%d channel lookups)",
            len(moves), tally.moved, tally.notLinked, tally.notInVoice,
            tally.invalidChannel, tally.skipped, tally.errors, channels.lookups,
        )
        return tally

    async def _relocate(self, handle, request: MoveRequest, channels: _ChannelCache) -> MoveOutcome:
        discord_id = self.store.get(request.uuid)
        if discord_id is None:
            return MoveOutcome.NOT_LINKED

        try:
            member = await handle.fetch_member(discord_id)
            if not handle.in_voice(member):
                return MoveOutcome.NOT_IN_VOICE

            channel = await channels.get(request.channel_id)
            if channel is None:
                return MoveOutcome.INVALID_CHANNEL

            await handle.move(member, channel)
        except GatewayError as e:
            log.error("Move error for %s → %s: %s", request.uuid, request.channel_id, e)
            return MoveOutcome.ERROR
        except Exception:
            log.exception("Move error for %s → %s", request.uuid, request.channel_id)
            return MoveOutcome.ERROR

        log.info("Moved %s (Discord %s) → channel %s", request.uuid, discord_id, request.channel_id)
        return MoveOutcome.MOVED
