"""
Lightweight in‑memory model types for the published miner snapshot.

There is **no database** here: a snapshot lives only until the next
successful refresh replaces it.
"""
from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from api.schemas import TipSetKey


__all__ = ["ChainReference", "Snapshot", "GAUGE_FIELDS"]


# ──────────────────────────────────────────────────────────────
# Dataclasses (no persistence)
# ──────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class ChainReference:
    """
    Chain point every query of a cycle is pinned to.
    ``height is None`` means "whatever the node considers head".
    """
    height: Optional[int] = None
    tipset_key: TipSetKey = field(default_factory=TipSetKey.head)

    @property
    def is_head(self) -> bool:
        return self.height is None

    def describe(self) -> str:
        if self.is_head:
            return "Head"
        return f"{self.height}, tsKey: {self.tipset_key}"


@dataclass(frozen=True)
class Snapshot:
    """
    One internally consistent view of a storage provider at one tipset.
    Immutable – the store swaps whole snapshots, never edits one.
    """
    miner_id: str
    reference: ChainReference

    # Power
    total_raw_byte_power: float
    total_quality_power: float
    miner_raw_byte_power: float
    miner_quality_power: float

    # Expectation
    win_per_day: float

    # Sectors
    sectors_committed: float
    sectors_active: float
    sectors_faulty: float

    # Balance (FIL)
    worker_balance: float
    control_balance: float
    miner_balance: float
    available_balance: float
    pledged_balance: float
    precommit_balance: float
    vesting_balance: float

    sector_size: int = 0

    # Timestamp when the snapshot object was created (UTC).
    fetched_at: _dt.datetime = field(
        default_factory=lambda: _dt.datetime.now(_dt.timezone.utc)
    )

    @property
    def tipset_key(self) -> Tuple[str, ...]:
        return self.reference.tipset_key.cids

    def to_dict(self) -> Dict[str, Any]:
        """Flat record served by the JSON endpoint."""
        return {
            "MinerID": self.miner_id,
            "Height": self.reference.height,
            "TipSetKey": list(self.tipset_key),
            "SectorSize": self.sector_size,
            "TotalRawBytePower": self.total_raw_byte_power,
            "TotalQualityPower": self.total_quality_power,
            "MinerRawBytePower": self.miner_raw_byte_power,
            "MinerQualityPower": self.miner_quality_power,
            "WinPerDay": self.win_per_day,
            "SectorsCommitted": self.sectors_committed,
            "SectorsActive": self.sectors_active,
            "SectorsFaulty": self.sectors_faulty,
            "WorkerBalance": self.worker_balance,
            "ControlBalance": self.control_balance,
            "MinerBalance": self.miner_balance,
            "AvailableBalance": self.available_balance,
            "PledgedBalance": self.pledged_balance,
            "PreCommitBalance": self.precommit_balance,
            "VestingBalance": self.vesting_balance,
            "FetchedAt": self.fetched_at.isoformat(),
        }


# Gauge name → (snapshot attribute, help text).
GAUGE_FIELDS: Dict[str, Tuple[str, str]] = {
    "total_raw_byte_power": ("total_raw_byte_power", "Total raw byte power of network"),
    "total_quality_power": ("total_quality_power", "Total quality power of network"),
    "miner_raw_byte_power": ("miner_raw_byte_power", "Raw byte power of Miner"),
    "miner_quality_power": ("miner_quality_power", "Quality power of miner"),
    "expect_win_per_day": ("win_per_day", "Expectation of wining blocks per day"),
    "sectors_committed": ("sectors_committed", "The number of committed sectors"),
    "sectors_active": ("sectors_active", "The number of active sectors"),
    "sectors_faulty": ("sectors_faulty", "The number of faulty sectors"),
    "worker_balance": ("worker_balance", "Balance of worker address"),
    "miner_balance": ("miner_balance", "Balance of miner address"),
    "control_balance": ("control_balance", "Balance of control address"),
    "available_balance": ("available_balance", "Balance available"),
    "pledged_balance": ("pledged_balance", "Balance of pledged"),
    "precommit_balance": ("precommit_balance", "Balance of precommit"),
    "vesting_balance": ("vesting_balance", "Balance vesting"),
}
