from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable

from rich.console import Console
from rich.table import Table

from ghostcycle.engine.snapshot import MAX_MINTS_PER_LEVEL, SystemSnapshot, WalletSnapshot
from ghostcycle.tiers import TierTable
from ghostcycle.wallets import short_address


def _fmt_ts(ts: int) -> str:
    if ts <= 0:
        return "-"
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def build_status_table(
    system: SystemSnapshot,
    wallet: WalletSnapshot,
    tiers: TierTable,
) -> Table:
    table = Table(title=f"Wallet {short_address(wallet.address, 12)}", show_header=False)
    table.add_column("Field")
    table.add_column("Value", justify="right")

    table.add_row("System minted", f"{system.total_minted} ({system.total_mint_events} mints)")
    table.add_row("System staked / claimed", f"{system.total_staked} / {system.total_claimed}")
    table.add_row("Unique users", str(system.unique_users))
    if system.level_user_counts:
        table.add_row("Users per level", " ".join(str(count) for count in system.level_user_counts))

    table.add_row("Level", f"{wallet.level} / {tiers.max_level}")
    table.add_row(
        "Minted at level", f"{wallet.minted_at_level} / {MAX_MINTS_PER_LEVEL} ({wallet.mints_remaining} left)"
    )
    table.add_row("Token balance", str(wallet.token_balance))
    table.add_row("Native balance", f"{wallet.native_balance / 1e9:.6f} SOL")
    table.add_row("Staked / claimed", f"{wallet.staked_amount} / {wallet.claimed_amount}")
    table.add_row("Unclaimed estimate", str(wallet.unclaimed_estimate))
    table.add_row("Next claim", f"{_fmt_ts(wallet.next_claim_time)} ({wallet.next_claim_amount})")
    if wallet.level <= tiers.max_level:
        table.add_row("Reward rate", f"{tiers.reward_rate(wallet.level)}/s")
        if not tiers.is_max_level(wallet.level):
            table.add_row("Next threshold", str(tiers.threshold(wallet.level + 1)))
    return table


def print_status(
    console: Console,
    system: SystemSnapshot,
    wallet: WalletSnapshot,
    tiers: TierTable,
) -> None:
    console.print(build_status_table(system, wallet, tiers))


def build_round_table(round_number: int, statuses: Iterable[str]) -> Table:
    counts = Counter(statuses)
    table = Table(title=f"Round {round_number} Summary")
    table.add_column("Outcome")
    table.add_column("Count", justify="right")
    for status, count in counts.most_common():
        table.add_row(status, str(count))
    return table


__all__ = ["build_round_table", "build_status_table", "print_status"]
