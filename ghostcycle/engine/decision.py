from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

from ghostcycle.engine.snapshot import WalletSnapshot
from ghostcycle.tiers import TierTable

ACTION_MINT = "MINT"
ACTION_UPGRADE = "UPGRADE"
ACTION_WAIT = "WAIT"
ACTION_INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"

REASON_MAX_TIER = "max tier reached"


class Decision(BaseModel):
    action: str
    required_stake: Optional[int] = None
    shortfall: Optional[int] = None
    reason: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def executable(self) -> bool:
        return self.action in {ACTION_MINT, ACTION_UPGRADE}

    def describe(self) -> str:
        if self.action == ACTION_UPGRADE:
            return f"{self.action} (stake {self.required_stake})"
        if self.action == ACTION_INSUFFICIENT_FUNDS:
            return f"{self.action} (short {self.shortfall})"
        if self.action == ACTION_WAIT:
            return f"{self.action} ({self.reason})"
        return self.action


def mint() -> Decision:
    return Decision(action=ACTION_MINT)


def upgrade(required_stake: int) -> Decision:
    return Decision(action=ACTION_UPGRADE, required_stake=required_stake)


def wait(reason: str) -> Decision:
    return Decision(action=ACTION_WAIT, reason=reason)


def insufficient_funds(shortfall: int, required_stake: Optional[int] = None) -> Decision:
    return Decision(action=ACTION_INSUFFICIENT_FUNDS, shortfall=shortfall, required_stake=required_stake)


def decide(snapshot: WalletSnapshot, tiers: TierTable) -> Decision:
    if snapshot.can_mint:
        return mint()
    if tiers.is_max_level(snapshot.level):
        return wait(REASON_MAX_TIER)
    required = tiers.threshold(snapshot.level + 1)
    if snapshot.token_balance >= required:
        return upgrade(required)
    return insufficient_funds(required - snapshot.token_balance, required_stake=required)


__all__ = [
    "ACTION_INSUFFICIENT_FUNDS",
    "ACTION_MINT",
    "ACTION_UPGRADE",
    "ACTION_WAIT",
    "Decision",
    "REASON_MAX_TIER",
    "decide",
    "insufficient_funds",
    "mint",
    "upgrade",
    "wait",
]
