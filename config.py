"""
Global configuration entry‑point.

▪ Loads environment variables from `.env` (if present)
▪ Exposes `load_settings()` – CLI flags are passed in as overrides
▪ Keeps the Filecoin protocol constants used by the metric derivations
"""

from __future__ import annotations

import re
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ──────────────────────────────────────────────────────────────
# 0. Load .env early so that pydantic can pick up the variables
# ──────────────────────────────────────────────────────────────
load_dotenv()

DEFAULT_LOTUS_RPC = "https://api.node.glif.io/rpc/v0"
DEFAULT_PORT = 9002

# Protocol constants (mainnet build parameters)
FILECOIN_PRECISION = 10**18     # attoFIL per FIL
BLOCKS_PER_EPOCH = 5            # expected leaders per epoch
BLOCK_DELAY_SECS = 30           # epoch duration
WIN_RATE_MULTIPLIER = 1_000_000
SECONDS_PER_DAY = 24 * 60 * 60

_ADDRESS_RE = re.compile(r"^[ft][0-4][a-z0-9]+$")


# ──────────────────────────────────────────────────────────────
# 1. Settings object (use everywhere instead of os.getenv)
# ──────────────────────────────────────────────────────────────
class _Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # --- General process switches ------------------------------------------------
    LOG_LEVEL: str = Field("INFO")  # DEBUG / INFO / WARNING / ERROR

    # --- Target miner ------------------------------------------------------------
    MINER_ID: str = Field(...)
    REFRESH_INTERVAL: float = Field(60.0)  # seconds
    TARGET_HEIGHT: int = Field(0)  # 0 → chain head

    # --- Lotus node --------------------------------------------------------------
    LOTUS_RPC_URL: str = Field(DEFAULT_LOTUS_RPC)
    LOTUS_API_TOKEN: Optional[str] = Field(None)
    RPC_TIMEOUT: float = Field(30.0)
    RPC_MAX_TRIES: int = Field(3)

    # --- Exposition --------------------------------------------------------------
    HOST: str = Field("0.0.0.0")
    PORT: int = Field(DEFAULT_PORT)

    # helpful computed values -----------------------------------------------------
    @property
    def follows_head(self) -> bool:
        return self.TARGET_HEIGHT == 0

    @field_validator("LOG_LEVEL")
    @classmethod
    def _validate_log_level(cls, v: str) -> str:
        allowed = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        v_up = v.upper()
        if v_up not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_up

    @field_validator("MINER_ID")
    @classmethod
    def _validate_miner_id(cls, v: str) -> str:
        v = v.strip().lower()
        if not v:
            raise ValueError("MINER_ID is required")
        if not _ADDRESS_RE.match(v):
            raise ValueError(f"MINER_ID {v!r} is not a Filecoin address")
        return v

    @field_validator("REFRESH_INTERVAL", "RPC_TIMEOUT")
    @classmethod
    def _positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be > 0")
        return v

    @field_validator("TARGET_HEIGHT")
    @classmethod
    def _non_negative_height(cls, v: int) -> int:
        if v < 0:
            raise ValueError("TARGET_HEIGHT must be >= 0")
        return v

    @field_validator("PORT")
    @classmethod
    def _valid_port(cls, v: int) -> int:
        if not 0 < v < 65536:
            raise ValueError("PORT must be in 1..65535")
        return v

    @field_validator("RPC_MAX_TRIES")
    @classmethod
    def _at_least_once(cls, v: int) -> int:
        return max(1, v)


def load_settings(**overrides) -> _Settings:
    """
    Build the settings object once at process start.

    Overrides (e.g. parsed CLI flags) win over environment variables;
    ``None`` values are ignored so unset flags fall through to the env.
    """
    return _Settings(**{k: v for k, v in overrides.items() if v is not None})
