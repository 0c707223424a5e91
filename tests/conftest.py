"""
Shared fixtures: an in‑memory stand‑in for the Lotus node.
"""
import pytest

from api.client import ChainQueryError
from api.schemas import (
    ActorState,
    Claim,
    LockedFunds,
    MinerInfo,
    MinerPower,
    SectorCounts,
    TipSet,
)

FIL = 10**18
MINER = "f01234"
WORKER = "f3worker"


class FakeChainClient:
    """
    Scriptable ChainQueryClient. ``fail`` names a method that raises;
    every call is recorded in ``calls`` as (method, args).
    """

    def __init__(
        self,
        *,
        miner_raw=10,
        miner_qap=10,
        total_raw=1000,
        total_qap=1000,
        has_min_power=True,
        balance=100 * FIL,
        pledge=40 * FIL,
        precommit=5 * FIL,
        vesting=20 * FIL,
        fee_debt=0,
        worker_balance=3 * FIL,
        control_balances=None,
        sectors=(120, 118, 2),
        sector_size=34359738368,
    ):
        self.miner_raw = miner_raw
        self.miner_qap = miner_qap
        self.total_raw = total_raw
        self.total_qap = total_qap
        self.has_min_power = has_min_power
        self.balance = balance
        self.pledge = pledge
        self.precommit = precommit
        self.vesting = vesting
        self.fee_debt = fee_debt
        self.worker_balance = worker_balance
        self.control_balances = dict(control_balances or {})
        self.sectors = sectors
        self.sector_size = sector_size
        self.fail = set()
        self.calls = []

    def _record(self, method, *args):
        self.calls.append((method, args))
        if method in self.fail:
            raise ChainQueryError(f"Filecoin.{method}", "boom")

    def resolve_tipset(self, height):
        self._record("resolve_tipset", height)
        return TipSet(Height=height, Cids=[{"/": f"bafy{height}a"}, {"/": f"bafy{height}b"}])

    def get_actor(self, address, tsk):
        self._record("get_actor", address, tsk)
        return ActorState(Balance=str(self.balance))

    def get_miner_info(self, address, tsk):
        self._record("get_miner_info", address, tsk)
        return MinerInfo(
            Owner="f3owner",
            Worker=WORKER,
            ControlAddresses=list(self.control_balances) or None,
            SectorSize=self.sector_size,
        )

    def get_miner_power(self, address, tsk):
        self._record("get_miner_power", address, tsk)
        return MinerPower(
            MinerPower=Claim(RawBytePower=str(self.miner_raw), QualityAdjPower=str(self.miner_qap)),
            TotalPower=Claim(RawBytePower=str(self.total_raw), QualityAdjPower=str(self.total_qap)),
            HasMinPower=self.has_min_power,
        )

    def get_sector_counts(self, address, tsk):
        self._record("get_sector_counts", address, tsk)
        live, active, faulty = self.sectors
        return SectorCounts(Live=live, Active=active, Faulty=faulty)

    def get_locked_funds(self, address, tsk):
        self._record("get_locked_funds", address, tsk)
        return LockedFunds(
            InitialPledge=str(self.pledge),
            PreCommitDeposits=str(self.precommit),
            LockedFunds=str(self.vesting),
            FeeDebt=str(self.fee_debt),
        )

    def get_balance(self, address):
        self._record("get_balance", address)
        if address == WORKER:
            return self.worker_balance
        if address in self.fail:
            raise ChainQueryError("Filecoin.WalletBalance", f"{address} unreachable")
        return self.control_balances[address]

    def methods_called(self):
        return [m for m, _ in self.calls]


@pytest.fixture
def fake_client():
    return FakeChainClient()
