from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ghostcycle.config import env_override

DEFAULT_KEY_FILE = "ghost_keys.txt"
DEFAULT_COMPUTE_UNIT_PRICE = 38_518
# rent-exempt minimum for a token account
DEFAULT_ACCOUNT_RENT_LAMPORTS = 2_039_280
DEFAULT_ESTIMATED_FEE_LAMPORTS = 5_000


@dataclass(frozen=True)
class CycleSettings:
    key_file: str = DEFAULT_KEY_FILE
    compute_unit_price_micro_lamports: int = DEFAULT_COMPUTE_UNIT_PRICE
    account_rent_lamports: int = DEFAULT_ACCOUNT_RENT_LAMPORTS
    estimated_fee_lamports: int = DEFAULT_ESTIMATED_FEE_LAMPORTS
    confirm_timeout_sec: float = 30.0
    confirm_poll_sec: float = 1.0
    inter_wallet_delay_sec: float = 5.0
    inter_round_delay_sec: float = 30.0
    max_empty_rounds: int = 3

    @property
    def min_native_balance(self) -> int:
        return self.account_rent_lamports + self.estimated_fee_lamports

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "CycleSettings":
        cycle_cfg = cfg.get("cycle", {}) or {}
        return cls(
            key_file=str(env_override("GHOSTCYCLE_KEY_FILE", cycle_cfg.get("key_file", DEFAULT_KEY_FILE))),
            compute_unit_price_micro_lamports=int(
                cycle_cfg.get("compute_unit_price_micro_lamports", DEFAULT_COMPUTE_UNIT_PRICE)
            ),
            account_rent_lamports=int(cycle_cfg.get("account_rent_lamports", DEFAULT_ACCOUNT_RENT_LAMPORTS)),
            estimated_fee_lamports=int(cycle_cfg.get("estimated_fee_lamports", DEFAULT_ESTIMATED_FEE_LAMPORTS)),
            confirm_timeout_sec=float(cycle_cfg.get("confirm_timeout_sec", 30.0)),
            confirm_poll_sec=float(cycle_cfg.get("confirm_poll_sec", 1.0)),
            inter_wallet_delay_sec=float(cycle_cfg.get("inter_wallet_delay_sec", 5.0)),
            inter_round_delay_sec=float(cycle_cfg.get("inter_round_delay_sec", 30.0)),
            max_empty_rounds=max(1, int(cycle_cfg.get("max_empty_rounds", 3))),
        )


__all__ = ["CycleSettings"]
