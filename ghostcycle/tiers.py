"""Per-level constants of the mint/stake program.

All amounts are in token base units. Level 0 is the unranked tier and the last
entry is the max tier, which has no further stake threshold.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from ghostcycle.core.exceptions import ProviderMisconfigured, TierOutOfRange


@dataclass(frozen=True)
class TierEntry:
    cumulative_supply: int
    reward_rate_per_second: int
    stake_threshold_to_next: Optional[int]


class TierTable:
    def __init__(self, entries: Sequence[TierEntry]) -> None:
        if not entries:
            raise ValueError("Tier table needs at least one level")
        previous = 0
        for level, entry in enumerate(entries):
            threshold = entry.stake_threshold_to_next
            is_last = level == len(entries) - 1
            if threshold is None:
                if not is_last:
                    raise ValueError(f"Level {level} is missing its stake threshold")
                continue
            if is_last:
                raise ValueError("Max tier must not define a stake threshold")
            if threshold < previous:
                raise ValueError(f"Stake threshold decreases at level {level}")
            previous = threshold
        self._entries: Tuple[TierEntry, ...] = tuple(entries)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "TierTable":
        entries = []
        for row in rows:
            threshold = row.get("stake_threshold_to_next")
            entries.append(
                TierEntry(
                    cumulative_supply=int(row.get("cumulative_supply", 0)),
                    reward_rate_per_second=int(row.get("reward_rate_per_second", 0)),
                    stake_threshold_to_next=None if threshold is None else int(threshold),
                )
            )
        return cls(entries)

    @property
    def max_level(self) -> int:
        return len(self._entries) - 1

    def __len__(self) -> int:
        return len(self._entries)

    def entry(self, level: int) -> TierEntry:
        if level < 0 or level > self.max_level:
            raise TierOutOfRange(level, self.max_level)
        return self._entries[level]

    def is_max_level(self, level: int) -> bool:
        self.entry(level)
        return level == self.max_level

    def threshold(self, level: int) -> int:
        """Stake needed to reach ``level``."""
        self.entry(level)
        if level == 0:
            return 0
        return self._entries[level - 1].stake_threshold_to_next or 0

    def reward_rate(self, level: int) -> int:
        return self.entry(level).reward_rate_per_second

    def supply_at_level(self, level: int) -> int:
        return self.entry(level).cumulative_supply


DEFAULT_TIERS = TierTable(
    [
        TierEntry(cumulative_supply=100_000_000_000, reward_rate_per_second=0, stake_threshold_to_next=2_000_000_000),
        TierEntry(cumulative_supply=300_000_000_000, reward_rate_per_second=100, stake_threshold_to_next=5_000_000_000),
        TierEntry(cumulative_supply=700_000_000_000, reward_rate_per_second=250, stake_threshold_to_next=11_000_000_000),
        TierEntry(cumulative_supply=1_500_000_000_000, reward_rate_per_second=600, stake_threshold_to_next=23_000_000_000),
        TierEntry(cumulative_supply=3_100_000_000_000, reward_rate_per_second=1_400, stake_threshold_to_next=47_000_000_000),
        TierEntry(cumulative_supply=6_300_000_000_000, reward_rate_per_second=3_200, stake_threshold_to_next=95_000_000_000),
        TierEntry(cumulative_supply=12_700_000_000_000, reward_rate_per_second=7_000, stake_threshold_to_next=None),
    ]
)


def tiers_from_config(cfg: Mapping[str, Any]) -> TierTable:
    rows = cfg.get("tiers") or []
    if not rows:
        return DEFAULT_TIERS
    try:
        return TierTable.from_rows(rows)
    except (TypeError, ValueError, AttributeError) as exc:
        raise ProviderMisconfigured(f"Invalid tier table in config: {exc}") from exc


__all__ = ["DEFAULT_TIERS", "TierEntry", "TierTable", "tiers_from_config"]
