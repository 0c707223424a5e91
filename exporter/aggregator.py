"""
One refresh cycle: query the node for a single miner at a fixed tipset and
fold the answers into an immutable :class:`storage.models.Snapshot`.

The first failing query aborts the whole cycle; nothing partial escapes.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, TypeVar

from api.client import ChainQueryClient, ChainQueryError
from api.schemas import TipSetKey
from storage.models import ChainReference, Snapshot
from exporter.derivation import (
    available_balance,
    balance_scale,
    power_scale,
    win_rate_per_day,
)

log = logging.getLogger(__name__)

T = TypeVar("T")


class SnapshotError(RuntimeError):
    """A refresh cycle was abandoned because ``query`` failed."""

    def __init__(self, query: str, cause: Exception):
        super().__init__(f"{query} failed: {cause}")
        self.query = query
        self.cause = cause


def resolve_reference(client: ChainQueryClient, height: Optional[int]) -> ChainReference:
    """
    Pin the chain point once at start‑up.

    ``height`` of 0/None follows head; anything else is resolved to its
    tipset key, and a failure there is a configuration error for the caller.
    """
    if not height:
        log.info("[Aggregator] Target height: Head")
        return ChainReference()
    ts = client.resolve_tipset(int(height))
    ref = ChainReference(height=int(height), tipset_key=ts.key)
    log.info("[Aggregator] Target height: %s", ref.describe())
    return ref


class SnapshotAggregator:
    """
    Entry‑point invoked once per tick by the scheduler.
    Stateless apart from its injected client and pinned chain reference.
    """

    def __init__(
        self,
        client: ChainQueryClient,
        miner_id: str,
        reference: Optional[ChainReference] = None,
    ) -> None:
        self._client = client
        self.miner_id = miner_id
        self.reference = reference or ChainReference()

    @property
    def tsk(self) -> TipSetKey:
        return self.reference.tipset_key

    def _query(self, name: str, fn: Callable[..., T], *args) -> T:
        try:
            return fn(*args)
        except ChainQueryError as e:
            raise SnapshotError(name, e) from e

    # ------------------------------------------------------------------ #
    # PUBLIC
    # ------------------------------------------------------------------ #
    def collect(self) -> Snapshot:
        c, addr, tsk = self._client, self.miner_id, self.tsk

        actor = self._query("actor state", c.get_actor, addr, tsk)
        info = self._query("miner info", c.get_miner_info, addr, tsk)
        log.info("[Aggregator] Sector Size: %s", _size_str(info.sector_size))

        power = self._query("miner power", c.get_miner_power, addr, tsk)
        sectors = self._query("sector count", c.get_sector_counts, addr, tsk)
        locked = self._query("locked funds", c.get_locked_funds, addr, tsk)

        worker = self._query(f"worker balance ({info.worker})", c.get_balance, info.worker)

        control_total = 0
        for ca in info.control_addresses:
            control_total += self._query(f"control balance ({ca})", c.get_balance, ca)

        win_per_day = win_rate_per_day(
            power.miner_power.quality_adj_power,
            power.total_power.quality_adj_power,
            power.has_min_power,
        )

        return Snapshot(
            miner_id=self.miner_id,
            reference=self.reference,
            total_raw_byte_power=power_scale(power.total_power.raw_byte_power),
            total_quality_power=power_scale(power.total_power.quality_adj_power),
            miner_raw_byte_power=power_scale(power.miner_power.raw_byte_power),
            miner_quality_power=power_scale(power.miner_power.quality_adj_power),
            win_per_day=win_per_day,
            sectors_committed=float(sectors.live),
            sectors_active=float(sectors.active),
            sectors_faulty=float(sectors.faulty),
            worker_balance=balance_scale(worker),
            control_balance=balance_scale(control_total),
            miner_balance=balance_scale(actor.balance),
            available_balance=balance_scale(available_balance(actor.balance, locked)),
            pledged_balance=balance_scale(locked.initial_pledge),
            precommit_balance=balance_scale(locked.precommit_deposits),
            vesting_balance=balance_scale(locked.vesting_funds),
            sector_size=info.sector_size,
        )


_UNITS = ["B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB"]


def _size_str(n: int) -> str:
    size = float(n)
    unit = 0
    while size >= 1024 and unit < len(_UNITS) - 1:
        size /= 1024
        unit += 1
    return f"{size:.4g} {_UNITS[unit]}"
