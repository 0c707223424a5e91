"""
Prometheus exposition of the current snapshot.

Gauges are produced at scrape time from whatever the store holds. Before
the first successful refresh the collector yields nothing, so the miner
gauges are absent rather than reading zero.
"""
from __future__ import annotations

import logging
from typing import Iterator

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from storage.models import GAUGE_FIELDS
from storage.snapshot_store import SnapshotNotAvailable, SnapshotStore

logger = logging.getLogger(__name__)


class SnapshotCollector(Collector):
    def __init__(self, store: SnapshotStore):
        self.store = store

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Registration must not depend on a snapshot being present.
        return iter(())

    def collect(self) -> Iterator[GaugeMetricFamily]:
        try:
            snapshot = self.store.get_current()
        except SnapshotNotAvailable:
            logger.debug("Scrape before first snapshot; no gauges exported")
            return
        for name, (attr, help_text) in GAUGE_FIELDS.items():
            yield GaugeMetricFamily(name, help_text, value=float(getattr(snapshot, attr)))


def build_registry(store: SnapshotStore) -> CollectorRegistry:
    """
    Private registry holding only the snapshot collector: no process or
    platform collectors.
    """
    registry = CollectorRegistry(auto_describe=False)
    registry.register(SnapshotCollector(store))
    return registry
