"""
linking/pending.py
Outstanding linking codes, registered over HTTP and claimed from Discord.

Entries are never swept in the background. An expired code stays in memory
until someone tries to claim it.
"""

from __future__ import annotations
import logging
import time
from dataclasses import dataclass
from typing import Optional

from errors import MissingFieldsError
from settings import DEFAULT_LINK_TTL

log = logging.getLogger("linkbot.pending")

DEFAULT_NAME = "unknown"


@dataclass
class PendingLink:
    code: str
    uuid: str
    name: str
    expires_at: float   # unix seconds

    def is_expired(self, now: float) -> bool:
        return now > self.expires_at


class PendingLinkRegistry:
    """In-memory code → PendingLink table. At most one live entry per code."""

    def __init__(self, ttl: float = DEFAULT_LINK_TTL):
        self.ttl = ttl
        self._entries: dict[str, PendingLink] = {}

    def register(
        self,
        code: Optional[str],
        uuid: Optional[str],
        name: Optional[str] = None,
        now: Optional[float] = None,
    ) -> PendingLink:
        """Store a code for uuid, replacing any entry already under that code."""
        if not code or not uuid:
            raise MissingFieldsError("code and uuid are required")

        now = time.time() if now is None else now
        entry = PendingLink(
            code=str(code),
            uuid=str(uuid),
            name=str(name) if name else DEFAULT_NAME,
            expires_at=now + self.ttl,
        )
        if entry.code in self._entries:
            log.info("Code %s re-registered; previous entry replaced.", entry.code)
        self._entries[entry.code] = entry
        log.info("Registered link code for %s (%s), valid %.0fs.", entry.uuid, entry.name, self.ttl)
        return entry

    def resolve(self, code: str) -> Optional[PendingLink]:
        return self._entries.get(code)

    def consume(self, code: str) -> None:
        self._entries.pop(code, None)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, code: object) -> bool:
        return code in self._entries
