"""
Typed views of the Lotus JSON‑RPC results the exporter consumes.

Lotus encodes big integers (power, attoFIL amounts) as decimal strings;
the validators below turn them into Python ``int`` so callers never deal
with the wire representation.
"""
from __future__ import annotations

from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _big_int(v) -> int:
    if v is None or v == "":
        return 0
    return int(v)


class _LotusModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class TipSetKey(_LotusModel):
    """List of block CIDs; an empty key means "current head"."""

    cids: Tuple[str, ...] = ()

    @classmethod
    def head(cls) -> "TipSetKey":
        return cls()

    @classmethod
    def from_rpc(cls, raw) -> "TipSetKey":
        return cls(cids=tuple(c["/"] for c in (raw or [])))

    def to_rpc(self) -> list:
        return [{"/": c} for c in self.cids]

    def __str__(self) -> str:
        return "{" + ",".join(self.cids) + "}"


class TipSet(_LotusModel):
    height: int = Field(alias="Height")
    cids: List[dict] = Field(default_factory=list, alias="Cids")

    @property
    def key(self) -> TipSetKey:
        return TipSetKey.from_rpc(self.cids)


class ActorState(_LotusModel):
    code: dict = Field(default_factory=dict, alias="Code")
    head: dict = Field(default_factory=dict, alias="Head")
    nonce: int = Field(0, alias="Nonce")
    balance: int = Field(0, alias="Balance")

    @field_validator("balance", mode="before")
    @classmethod
    def _parse_balance(cls, v):
        return _big_int(v)


class MinerInfo(_LotusModel):
    owner: str = Field(alias="Owner")
    worker: str = Field(alias="Worker")
    control_addresses: List[str] = Field(default_factory=list, alias="ControlAddresses")
    sector_size: int = Field(0, alias="SectorSize")

    @field_validator("control_addresses", mode="before")
    @classmethod
    def _null_list(cls, v):
        return v or []


class Claim(_LotusModel):
    raw_byte_power: int = Field(0, alias="RawBytePower")
    quality_adj_power: int = Field(0, alias="QualityAdjPower")

    @field_validator("raw_byte_power", "quality_adj_power", mode="before")
    @classmethod
    def _parse_power(cls, v):
        return _big_int(v)


class MinerPower(_LotusModel):
    miner_power: Claim = Field(alias="MinerPower")
    total_power: Claim = Field(alias="TotalPower")
    has_min_power: bool = Field(False, alias="HasMinPower")


class SectorCounts(_LotusModel):
    live: int = Field(0, alias="Live")
    active: int = Field(0, alias="Active")
    faulty: int = Field(0, alias="Faulty")


class LockedFunds(_LotusModel):
    """Locked‑funds breakdown read from the miner actor state."""

    initial_pledge: int = Field(0, alias="InitialPledge")
    precommit_deposits: int = Field(0, alias="PreCommitDeposits")
    vesting_funds: int = Field(0, alias="LockedFunds")
    fee_debt: int = Field(0, alias="FeeDebt")

    @field_validator(
        "initial_pledge", "precommit_deposits", "vesting_funds", "fee_debt", mode="before"
    )
    @classmethod
    def _parse_amounts(cls, v):
        return _big_int(v)
