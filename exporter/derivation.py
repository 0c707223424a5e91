"""
Pure conversions from raw node answers to published numbers.

Power and attoFIL amounts routinely exceed 64 bits, so every conversion
goes through :class:`fractions.Fraction` and rounds exactly once.
"""
from __future__ import annotations

from fractions import Fraction

from config import (
    BLOCK_DELAY_SECS,
    BLOCKS_PER_EPOCH,
    FILECOIN_PRECISION,
    SECONDS_PER_DAY,
    WIN_RATE_MULTIPLIER,
)
from api.schemas import LockedFunds


def power_scale(value: int) -> float:
    """Nearest float to an arbitrary‑precision power value."""
    return float(Fraction(int(value)))


def balance_scale(amount: int, precision: int = FILECOIN_PRECISION) -> float:
    """attoFIL → FIL."""
    amount = int(amount)
    if amount == 0:
        return 0.0
    return float(Fraction(amount, precision))


def expected_win_chance(
    miner_qap: int,
    total_qap: int,
    blocks_per_epoch: int = BLOCKS_PER_EPOCH,
) -> float:
    """
    Expected number of blocks won per epoch, clamped to 1.0.

    The power share is taken in integer arithmetic scaled by
    ``WIN_RATE_MULTIPLIER``; the multiplier is divided out last.
    """
    if total_qap <= 0 or miner_qap <= 0:
        return 0.0
    qperc = (int(miner_qap) * WIN_RATE_MULTIPLIER) // int(total_qap)
    chance = (qperc * blocks_per_epoch) / WIN_RATE_MULTIPLIER
    return min(chance, 1.0)


def win_rate_per_day(
    miner_qap: int,
    total_qap: int,
    has_min_power: bool,
    blocks_per_epoch: int = BLOCKS_PER_EPOCH,
    block_delay_secs: int = BLOCK_DELAY_SECS,
) -> float:
    """
    Expected wins per 24h.

    0 when the miner is below the minimum power threshold or its expected
    chance rounds to zero.
    """
    if not has_min_power:
        return 0.0
    chance = expected_win_chance(miner_qap, total_qap, blocks_per_epoch)
    if chance <= 0.0:
        return 0.0
    seconds_between_wins = block_delay_secs / chance
    return SECONDS_PER_DAY / seconds_between_wins


def available_balance(actor_balance: int, locked: LockedFunds) -> int:
    """Spendable attoFIL: actor balance net of every lock and fee debt, floored at 0."""
    remaining = (
        int(actor_balance)
        - locked.vesting_funds
        - locked.precommit_deposits
        - locked.initial_pledge
        - locked.fee_debt
    )
    return max(remaining, 0)
