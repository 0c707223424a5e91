"""
Tests for one refresh cycle against a fake node.
"""
import pytest

from api.client import ChainQueryError
from api.schemas import TipSetKey
from conftest import FIL, MINER, WORKER, FakeChainClient
from exporter.aggregator import SnapshotAggregator, SnapshotError, resolve_reference
from storage.models import ChainReference


def test_collect_builds_full_snapshot(fake_client):
    snap = SnapshotAggregator(fake_client, MINER).collect()

    assert snap.miner_id == MINER
    assert snap.reference.is_head
    assert snap.total_raw_byte_power == 1000.0
    assert snap.total_quality_power == 1000.0
    assert snap.miner_raw_byte_power == 10.0
    assert snap.miner_quality_power == 10.0
    assert snap.win_per_day == pytest.approx(144.0)
    assert (snap.sectors_committed, snap.sectors_active, snap.sectors_faulty) == (120.0, 118.0, 2.0)
    assert snap.miner_balance == 100.0
    assert snap.pledged_balance == 40.0
    assert snap.precommit_balance == 5.0
    assert snap.vesting_balance == 20.0
    assert snap.available_balance == 35.0
    assert snap.worker_balance == 3.0
    assert snap.sector_size == 34359738368


def test_zero_control_addresses_issue_no_control_queries(fake_client):
    snap = SnapshotAggregator(fake_client, MINER).collect()

    assert snap.control_balance == 0.0
    balance_calls = [args for m, args in fake_client.calls if m == "get_balance"]
    assert balance_calls == [(WORKER,)]


def test_control_balances_are_summed():
    client = FakeChainClient(control_balances={"f1ctrla": 2 * FIL, "f1ctrlb": FIL // 2})
    snap = SnapshotAggregator(client, MINER).collect()
    assert snap.control_balance == 2.5


def test_control_balance_failure_aborts_cycle():
    client = FakeChainClient(control_balances={"f1ctrla": FIL, "f1ctrlb": FIL})
    client.fail.add("f1ctrlb")
    with pytest.raises(SnapshotError) as exc:
        SnapshotAggregator(client, MINER).collect()
    assert "f1ctrlb" in exc.value.query


@pytest.mark.parametrize(
    "method,query",
    [
        ("get_actor", "actor state"),
        ("get_miner_info", "miner info"),
        ("get_miner_power", "miner power"),
        ("get_sector_counts", "sector count"),
        ("get_locked_funds", "locked funds"),
    ],
)
def test_first_failure_aborts_and_names_query(fake_client, method, query):
    fake_client.fail.add(method)
    with pytest.raises(SnapshotError) as exc:
        SnapshotAggregator(fake_client, MINER).collect()

    assert exc.value.query == query
    assert isinstance(exc.value.cause, ChainQueryError)
    # nothing after the failing query was attempted
    assert fake_client.methods_called()[-1] == method


def test_ineligible_miner_has_zero_win_rate():
    client = FakeChainClient(miner_qap=500, has_min_power=False)
    snap = SnapshotAggregator(client, MINER).collect()
    assert snap.win_per_day == 0.0
    assert snap.miner_quality_power == 500.0


def test_zero_network_power_yields_zero_win_rate():
    client = FakeChainClient(total_raw=0, total_qap=0)
    assert SnapshotAggregator(client, MINER).collect().win_per_day == 0.0


def test_every_query_uses_pinned_tipset(fake_client):
    ref = resolve_reference(fake_client, 1200)
    SnapshotAggregator(fake_client, MINER, ref).collect()
    SnapshotAggregator(fake_client, MINER, ref).collect()

    tipsets = {args[1] for m, args in fake_client.calls if m.startswith("get_") and m != "get_balance"}
    assert tipsets == {ref.tipset_key}
    assert ref.tipset_key.cids == ("bafy1200a", "bafy1200b")


def test_resolve_reference_head_issues_no_query(fake_client):
    ref = resolve_reference(fake_client, 0)
    assert ref == ChainReference()
    assert ref.tipset_key == TipSetKey.head()
    assert fake_client.calls == []


def test_resolve_reference_failure_propagates(fake_client):
    fake_client.fail.add("resolve_tipset")
    with pytest.raises(ChainQueryError):
        resolve_reference(fake_client, 99)
