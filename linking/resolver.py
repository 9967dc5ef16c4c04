"""
linking/resolver.py

Claims a pending linking code on behalf of a Discord user.

A code moves through exactly one of three outcomes:
  NOT_FOUND  — never registered, already claimed, or already expired-and-discarded
  EXPIRED    — registered but past its expiry; the entry is discarded
  LINKED     — mapping committed and the entry consumed

Lookup, decision and mutation for a code run without yielding to the event
loop, so two messages carrying the same code cannot both commit.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .pending import PendingLink, PendingLinkRegistry
from .store import IdentityMapStore

log = logging.getLogger("linkbot.resolver")

LINK_PREFIX = "!link "


class LinkOutcome(Enum):
    NOT_FOUND      = "not_found"
    EXPIRED        = "expired"
    LINKED         = "linked"
    PERSIST_FAILED = "persist_failed"


REPLIES: dict[LinkOutcome, str] = {
    LinkOutcome.NOT_FOUND:      "Invalid or expired code.",
    LinkOutcome.EXPIRED:        "Code expired.",
    LinkOutcome.LINKED:         "Link complete. You can return in game.",
    LinkOutcome.PERSIST_FAILED: "Link could not be saved. Please request a new code in game.",
}


@dataclass
class LinkResult:
    outcome: LinkOutcome
    uuid: Optional[str] = None

    @property
    def reply(self) -> str:
        return REPLIES[self.outcome]


def parse_link_command(text: Optional[str]) -> Optional[str]:
    """Return the code from a '!link <code>' message, or None if it isn't one."""
    if not text:
        return None
    content = text.strip()
    if not content.startswith(LINK_PREFIX):
        return None
    return content[len(LINK_PREFIX):].strip()


def decide(entry: Optional[PendingLink], now: float) -> LinkOutcome:
    if entry is None:
        return LinkOutcome.NOT_FOUND
    if entry.is_expired(now):
        return LinkOutcome.EXPIRED
    return LinkOutcome.LINKED


class LinkResolver:
    def __init__(self, pending: PendingLinkRegistry, store: IdentityMapStore):
        self.pending = pending
        self.store   = store

    def resolve(self, code: str, discord_id: str, now: Optional[float] = None) -> LinkResult:
        now     = time.time() if now is None else now
        entry   = self.pending.resolve(code) if code else None
        outcome = decide(entry, now)

        if outcome is LinkOutcome.NOT_FOUND:
            log.info("Link attempt by %s with unknown code %r", discord_id, code)
            return LinkResult(outcome)

        self.pending.consume(code)

        if outcome is LinkOutcome.EXPIRED:
            log.info("Link code for %s expired before %s claimed it.", entry.uuid, discord_id)
            return LinkResult(outcome, entry.uuid)

        previous = self.store.set(entry.uuid, discord_id)
        try:
            self.store.save()
        except OSError:
            self.store.restore(entry.uuid, previous)
            log.exception("Failed to persist link %s → %s; rolled back.", entry.uuid, discord_id)
            return LinkResult(LinkOutcome.PERSIST_FAILED, entry.uuid)

        log.info("Linked %s (%s) → Discord %s", entry.uuid, entry.name, discord_id)
        return LinkResult(outcome, entry.uuid)
