from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional

from rich.console import Console

from ghostcycle.core.exceptions import WalletListEmpty
from ghostcycle.engine.cycle import CycleOutcome, WalletCycleRunner
from ghostcycle.engine.settings import CycleSettings
from ghostcycle.engine.status import build_round_table

logger = logging.getLogger(__name__)

STATE_LOADING_WALLETS = "LOADING_WALLETS"
STATE_PROCESSING_WALLET = "PROCESSING_WALLET"
STATE_INTER_ROUND_WAIT = "INTER_ROUND_WAIT"


@dataclass
class FleetState:
    status: str = STATE_LOADING_WALLETS
    wallet_index: int = 0
    round_number: int = 0
    empty_rounds: int = 0


class FleetLoop:
    def __init__(
        self,
        runner: WalletCycleRunner,
        load_keys: Callable[[], List[str]],
        settings: Optional[CycleSettings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        console: Optional[Console] = None,
    ) -> None:
        self.runner = runner
        self.load_keys = load_keys
        self.settings = settings or CycleSettings()
        self.state = FleetState()
        self._sleep = sleep
        self.console = console or runner.console

    async def run_round(self) -> List[CycleOutcome]:
        self.state.round_number += 1
        self.state.status = STATE_LOADING_WALLETS
        self.state.wallet_index = 0
        # re-read every round so the key file can be edited while running
        keys = self.load_keys()
        if not keys:
            self.state.empty_rounds += 1
            logger.error(
                "No valid private keys found (%d/%d empty rounds)",
                self.state.empty_rounds,
                self.settings.max_empty_rounds,
            )
            if self.state.empty_rounds >= self.settings.max_empty_rounds:
                raise WalletListEmpty(f"Wallet list empty for {self.state.empty_rounds} consecutive rounds")
            return []
        self.state.empty_rounds = 0

        logger.info("Round %d: %d wallets", self.state.round_number, len(keys))
        outcomes: List[CycleOutcome] = []
        for index, secret in enumerate(keys):
            self.state.status = STATE_PROCESSING_WALLET
            self.state.wallet_index = index
            logger.info("Wallet %d/%d", index + 1, len(keys))
            outcomes.append(await self.runner.run(secret))
            await self._sleep(self.settings.inter_wallet_delay_sec)

        self.console.print(build_round_table(self.state.round_number, [o.status for o in outcomes]))
        return outcomes

    async def run(self, max_rounds: Optional[int] = None) -> int:
        """Run rounds until stopped; ``max_rounds`` bounds the loop for tests."""
        completed = 0
        while max_rounds is None or completed < max_rounds:
            await self.run_round()
            completed += 1
            self.state.status = STATE_INTER_ROUND_WAIT
            logger.info("Waiting %.0fs before the next round", self.settings.inter_round_delay_sec)
            await self._sleep(self.settings.inter_round_delay_sec)
        return completed


__all__ = [
    "FleetLoop",
    "FleetState",
    "STATE_INTER_ROUND_WAIT",
    "STATE_LOADING_WALLETS",
    "STATE_PROCESSING_WALLET",
]
