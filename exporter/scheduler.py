"""
Fixed‑interval refresh loop.

One daemon thread ticks immediately at start and then every ``interval``
seconds. A successful cycle is published to the store; a failed one is
logged and the previously published snapshot keeps being served.
"""
from __future__ import annotations

import enum
import logging
import threading
import time
from typing import Optional

from exporter.aggregator import SnapshotAggregator, SnapshotError
from storage.models import Snapshot
from storage.snapshot_store import SnapshotStore

log = logging.getLogger(__name__)


class SchedulerState(enum.Enum):
    IDLE = "idle"
    REFRESHING = "refreshing"


class Scheduler(threading.Thread):
    def __init__(
        self,
        *,
        aggregator: SnapshotAggregator,
        store: SnapshotStore,
        interval: float = 60.0,
    ):
        super().__init__(daemon=True, name=f"Scheduler-{aggregator.miner_id}")
        self.aggregator = aggregator
        self.store = store
        self.interval = float(interval)
        self.state = SchedulerState.IDLE
        self.cycles = 0
        self.failures = 0
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run_once(self) -> Optional[Snapshot]:
        """One tick: Idle → Refreshing → Idle, whatever the outcome."""
        self.state = SchedulerState.REFRESHING
        started = time.monotonic()
        try:
            snapshot = self.aggregator.collect()
        except SnapshotError as e:
            self.failures += 1
            log.error("[Scheduler] get info err %s", e)
            return None
        finally:
            self.cycles += 1
            self.state = SchedulerState.IDLE

        record = self.store.publish(snapshot)
        log.info(
            "[Scheduler] Published snapshot for %s in %.1fs: %s",
            snapshot.miner_id,
            time.monotonic() - started,
            record.payload.decode("utf-8"),
        )
        return snapshot

    def run(self) -> None:
        log.info(
            "[Scheduler] Started for %s, interval=%.0fs",
            self.aggregator.miner_id,
            self.interval,
        )
        next_tick = time.monotonic()
        while not self._stop_event.is_set():
            try:
                self.run_once()
            except Exception as e:
                # Anything unexpected must not kill the loop either.
                self.failures += 1
                log.exception("[Scheduler] Unexpected refresh error: %s", e)

            next_tick += self.interval
            delay = next_tick - time.monotonic()
            if delay < 0:
                # Slow cycle: ticks that fell inside it are dropped.
                next_tick = time.monotonic()
                delay = 0.0
            self._stop_event.wait(delay)
        log.info("[Scheduler] Stopped")
