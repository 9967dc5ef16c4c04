"""
linking/store.py
Durable uuid → Discord ID mapping, kept as a flat JSON object on disk.

The whole file is rewritten synchronously after every mutation. This store
is the only writer of the file.
"""

from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import Optional

log = logging.getLogger("linkbot.store")


class IdentityMapStore:
    def __init__(self, path: str | os.PathLike):
        self.path = Path(path)
        self._links: dict[str, str] = {}

    def load(self) -> None:
        """Read the mapping from disk. A missing or unreadable file leaves it empty."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._links = {}
        if not self.path.exists():
            log.info("No links file at %s — starting empty.", self.path)
            return
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.error("Failed to read %s: %s", self.path, e)
            return
        if not isinstance(data, dict):
            log.error("Ignoring %s: expected a JSON object.", self.path)
            return
        self._links = {str(k): str(v) for k, v in data.items()}
        log.info("Loaded %d linked accounts from %s", len(self._links), self.path)

    def get(self, uuid: str) -> Optional[str]:
        return self._links.get(uuid)

    def set(self, uuid: str, discord_id: str) -> Optional[str]:
        """Map uuid to discord_id. Returns the previous Discord ID, if any."""
        previous = self._links.get(uuid)
        self._links[uuid] = discord_id
        if previous and previous != discord_id:
            log.info("Relinking %s: %s → %s", uuid, previous, discord_id)
        return previous

    def restore(self, uuid: str, previous: Optional[str]) -> None:
        """Undo a set() whose save() failed."""
        if previous is None:
            self._links.pop(uuid, None)
        else:
            self._links[uuid] = previous

    def save(self) -> None:
        """Rewrite the links file in full. Raises OSError on failure."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(".tmp")
        try:
            tmp_path.write_text(json.dumps(self._links, indent=2), encoding="utf-8")
            tmp_path.replace(self.path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
        log.debug("Saved %d links to %s", len(self._links), self.path)

    def snapshot(self) -> dict[str, str]:
        return dict(self._links)

    def __len__(self) -> int:
        return len(self._links)

    def __contains__(self, uuid: object) -> bool:
        return uuid in self._links
