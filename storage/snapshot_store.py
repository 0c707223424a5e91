"""
Single‑slot holder for the most recent snapshot.

The slot holds one immutable :class:`PublishedSnapshot`. A publish builds
the complete record (snapshot + pre‑rendered JSON) first and only then
swaps the reference, so a reader gets either the old record or the new
one, never a mix. Readers take no lock.
"""
from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from typing import Optional

from .models import Snapshot


class SnapshotNotAvailable(LookupError):
    """Raised by reads before the first successful refresh."""


@dataclass(frozen=True)
class PublishedSnapshot:
    snapshot: Snapshot
    payload: bytes


class SnapshotStore:
    def __init__(self) -> None:
        self._current: Optional[PublishedSnapshot] = None
        self._write_lock = threading.Lock()
        self._generation = 0

    @staticmethod
    def render(snapshot: Snapshot) -> bytes:
        return json.dumps(snapshot.to_dict(), separators=(",", ":")).encode("utf-8")

    def publish(self, snapshot: Snapshot) -> PublishedSnapshot:
        record = PublishedSnapshot(snapshot=snapshot, payload=self.render(snapshot))
        with self._write_lock:
            self._current = record
            self._generation += 1
        return record

    def get_published(self) -> PublishedSnapshot:
        record = self._current
        if record is None:
            raise SnapshotNotAvailable("no snapshot has been published yet")
        return record

    def get_current(self) -> Snapshot:
        return self.get_published().snapshot

    def get_payload(self) -> bytes:
        return self.get_published().payload

    @property
    def available(self) -> bool:
        return self._current is not None

    @property
    def generation(self) -> int:
        """Number of successful publishes so far."""
        return self._generation
