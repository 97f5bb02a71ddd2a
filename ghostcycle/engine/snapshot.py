from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ghostcycle.program.layouts import GhostSystemAccount, GhostUserSummaryAccount

MAX_MINTS_PER_LEVEL = 10


class SystemSnapshot(BaseModel):
    total_minted: int = 0
    total_mint_events: int = 0
    total_staked: int = 0
    total_claimed: int = 0
    unique_users: int = 0
    level_user_counts: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_account(cls, account: GhostSystemAccount) -> "SystemSnapshot":
        return cls(**account.model_dump())


class WalletSnapshot(BaseModel):
    address: str
    level: int = Field(default=0, ge=0)
    minted_at_level: int = Field(default=0, ge=0, le=MAX_MINTS_PER_LEVEL)
    staked_amount: int = 0
    claimed_amount: int = 0
    unclaimed_estimate: int = 0
    next_claim_time: int = 0
    next_claim_amount: int = 0
    token_balance: int = 0
    native_balance: int = 0
    holding_account_exists: bool = False
    initialized: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def can_mint(self) -> bool:
        return self.minted_at_level < MAX_MINTS_PER_LEVEL

    @property
    def mints_remaining(self) -> int:
        return MAX_MINTS_PER_LEVEL - self.minted_at_level

    @classmethod
    def build(
        cls,
        address: str,
        summary: Optional[GhostUserSummaryAccount],
        token_balance: Optional[int],
        native_balance: int,
        unclaimed_estimate: int = 0,
        next_claim_time: int = 0,
        next_claim_amount: int = 0,
    ) -> "WalletSnapshot":
        holding = token_balance is not None
        if summary is None:
            # never interacted with the program: fresh level 0 wallet
            return cls(
                address=address,
                token_balance=token_balance or 0,
                native_balance=native_balance,
                holding_account_exists=holding,
            )
        return cls(
            address=address,
            level=summary.level,
            minted_at_level=summary.minted_times,
            staked_amount=summary.staked_amount,
            claimed_amount=summary.claimed_amount,
            unclaimed_estimate=unclaimed_estimate,
            next_claim_time=next_claim_time,
            next_claim_amount=next_claim_amount,
            token_balance=token_balance or 0,
            native_balance=native_balance,
            holding_account_exists=holding,
            initialized=True,
        )


__all__ = ["MAX_MINTS_PER_LEVEL", "SystemSnapshot", "WalletSnapshot"]
