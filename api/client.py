"""
Typed synchronous client for the Lotus full‑node JSON‑RPC API.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional, Protocol

import backoff
import httpx

from config import DEFAULT_LOTUS_RPC
from .schemas import (
    ActorState,
    LockedFunds,
    MinerInfo,
    MinerPower,
    SectorCounts,
    TipSet,
    TipSetKey,
)

log = logging.getLogger("lotus_api_client")


class ChainQueryError(RuntimeError):
    """A node query failed (transport error, HTTP error or JSON‑RPC error)."""

    def __init__(self, method: str, message: str, code: Optional[int] = None):
        super().__init__(f"{method}: {message}")
        self.method = method
        self.code = code


class ChainQueryClient(Protocol):
    """
    Capability interface the aggregator depends on.

    Every method either returns a typed result or raises
    :class:`ChainQueryError`.
    """

    def resolve_tipset(self, height: int) -> TipSet: ...

    def get_actor(self, address: str, tsk: TipSetKey) -> ActorState: ...

    def get_miner_info(self, address: str, tsk: TipSetKey) -> MinerInfo: ...

    def get_miner_power(self, address: str, tsk: TipSetKey) -> MinerPower: ...

    def get_sector_counts(self, address: str, tsk: TipSetKey) -> SectorCounts: ...

    def get_locked_funds(self, address: str, tsk: TipSetKey) -> LockedFunds: ...

    def get_balance(self, address: str) -> int: ...


class LotusAPIClient:
    """
    Minimal wrapper around httpx.Client speaking Lotus JSON‑RPC 2.0.

    Transport‑level failures are retried a few times by ``backoff``;
    JSON‑RPC error objects are returned by the node itself and are not.
    """

    DEFAULT_TIMEOUT = 30.0
    DEFAULT_MAX_TRIES = 3
    NAMESPACE = "Filecoin"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        token: str | None = None,
        max_tries: int | None = None,
        transport: httpx.BaseTransport | None = None,  # injectable for tests
    ):
        self.base_url: str = str(base_url or DEFAULT_LOTUS_RPC)
        self.timeout = timeout or self.DEFAULT_TIMEOUT
        self.max_tries = max_tries or self.DEFAULT_MAX_TRIES
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            timeout=self.timeout, headers=headers, transport=transport
        )
        self._ids = itertools.count(1)

    # ────────────────────────────────────────────────────────
    # Transport
    # ────────────────────────────────────────────────────────
    def call(self, method: str, *params: Any) -> Any:
        """Issue one JSON‑RPC call and return its ``result`` member."""
        full_method = f"{self.NAMESPACE}.{method}"
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": full_method,
            "params": list(params),
        }
        try:
            data = self._post(payload)
        except httpx.HTTPError as e:
            raise ChainQueryError(full_method, f"transport error: {e}") from e
        except ValueError as e:
            raise ChainQueryError(full_method, f"invalid JSON response: {e}") from e

        if not isinstance(data, dict):
            raise ChainQueryError(full_method, "expected a JSON object response")
        if data.get("error"):
            err = data["error"]
            if not isinstance(err, dict):
                raise ChainQueryError(full_method, str(err))
            raise ChainQueryError(
                full_method, str(err.get("message", err)), code=err.get("code")
            )
        log.debug("%s → ok", full_method)
        return data.get("result")

    def _post(self, payload: dict) -> Any:
        @backoff.on_exception(
            backoff.expo,
            httpx.TransportError,
            max_tries=self.max_tries,
            jitter=None,
            factor=2,
        )
        def _send() -> Any:
            response = self._client.post(self.base_url, json=payload)
            response.raise_for_status()
            return response.json()

        return _send()

    # ────────────────────────────────────────────────────────
    # Public endpoints
    # ────────────────────────────────────────────────────────
    def resolve_tipset(self, height: int) -> TipSet:
        raw = self.call("ChainGetTipSetByHeight", height, TipSetKey.head().to_rpc())
        return self._parse(TipSet, raw, "ChainGetTipSetByHeight")

    def get_actor(self, address: str, tsk: TipSetKey) -> ActorState:
        raw = self.call("StateGetActor", address, tsk.to_rpc())
        return self._parse(ActorState, raw, "StateGetActor")

    def get_miner_info(self, address: str, tsk: TipSetKey) -> MinerInfo:
        raw = self.call("StateMinerInfo", address, tsk.to_rpc())
        return self._parse(MinerInfo, raw, "StateMinerInfo")

    def get_miner_power(self, address: str, tsk: TipSetKey) -> MinerPower:
        raw = self.call("StateMinerPower", address, tsk.to_rpc())
        return self._parse(MinerPower, raw, "StateMinerPower")

    def get_sector_counts(self, address: str, tsk: TipSetKey) -> SectorCounts:
        raw = self.call("StateMinerSectorCount", address, tsk.to_rpc())
        return self._parse(SectorCounts, raw, "StateMinerSectorCount")

    def get_locked_funds(self, address: str, tsk: TipSetKey) -> LockedFunds:
        raw = self.call("StateReadState", address, tsk.to_rpc())
        state = (raw or {}).get("State") if isinstance(raw, dict) else None
        return self._parse(LockedFunds, state, "StateReadState")

    def get_balance(self, address: str) -> int:
        raw = self.call("WalletBalance", address)
        if raw is None:
            raise ChainQueryError(f"{self.NAMESPACE}.WalletBalance", "empty result")
        try:
            return int(raw)
        except (TypeError, ValueError) as e:
            raise ChainQueryError(f"{self.NAMESPACE}.WalletBalance", f"bad balance {raw!r}") from e

    @classmethod
    def _parse(cls, model, raw, method: str):
        if raw is None:
            raise ChainQueryError(f"{cls.NAMESPACE}.{method}", "empty result")
        try:
            return model.model_validate(raw)
        except ValueError as e:  # pydantic.ValidationError is a ValueError
            raise ChainQueryError(f"{cls.NAMESPACE}.{method}", f"unexpected result shape: {e}") from e

    # ────────────────────────────────────────────────────────
    # Context manager helpers
    # ────────────────────────────────────────────────────────
    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "LotusAPIClient":
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:  # noqa: D401
        self.close()
