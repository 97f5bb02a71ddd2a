from __future__ import annotations

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional

from rich.console import Console

from ghostcycle.core.exceptions import ProviderMisconfigured
from ghostcycle.engine.cycle import WalletCycleRunner
from ghostcycle.engine.executor import ActionExecutor
from ghostcycle.engine.fetcher import StateFetcher
from ghostcycle.engine.fleet import FleetLoop
from ghostcycle.engine.settings import CycleSettings
from ghostcycle.program.addresses import ProgramSettings
from ghostcycle.rpc.ledger import LedgerClient
from ghostcycle.tiers import TierTable, tiers_from_config
from ghostcycle.wallets import load_private_keys


def build_fleet(
    cfg: Dict[str, Any],
    ledger: LedgerClient,
    tiers: Optional[TierTable] = None,
    console: Optional[Console] = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> FleetLoop:
    program = ProgramSettings.from_config(cfg)
    try:
        settings = CycleSettings.from_config(cfg)
    except (TypeError, ValueError) as exc:
        raise ProviderMisconfigured(f"Invalid cycle settings in config: {exc}") from exc
    table = tiers or tiers_from_config(cfg)
    runner = WalletCycleRunner(
        fetcher=StateFetcher(ledger, program),
        executor=ActionExecutor(ledger, program, settings=settings, sleep=sleep),
        tiers=table,
        console=console,
    )
    return FleetLoop(
        runner,
        load_keys=partial(load_private_keys, settings.key_file),
        settings=settings,
        sleep=sleep,
        console=console,
    )


__all__ = ["build_fleet"]
