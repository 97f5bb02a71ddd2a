from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from ghostcycle.composition import build_fleet
from ghostcycle.config import get_config
from ghostcycle.core.exceptions import ProviderMisconfigured, TierOutOfRange, WalletListEmpty
from ghostcycle.rpc.provider import get_rpc_provider

logger = logging.getLogger("ghostcycle")


def _build_parser() -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog="ghostcycle",
        description=(
            "Mint, upgrade and track rewards for every wallet in the key file, round after round. "
            "Settings come from config/default.yaml and GHOSTCYCLE_* environment variables."
        ),
    )


def _configure_logging(console: Console) -> None:
    level = os.getenv("GHOSTCYCLE_LOG_LEVEL", "INFO").strip().upper() or "INFO"
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def run_fleet(console: Console, max_rounds: Optional[int] = None) -> int:
    cfg = get_config(refresh=True)
    async with get_rpc_provider(cfg) as ledger:
        fleet = build_fleet(cfg, ledger, console=console)
        return await fleet.run(max_rounds=max_rounds)


def main(argv: Optional[List[str]] = None) -> int:
    _build_parser().parse_args(argv)
    console = Console()
    _configure_logging(console)
    try:
        asyncio.run(run_fleet(console))
    except KeyboardInterrupt:
        logger.info("Stopped")
        return 0
    except (ProviderMisconfigured, FileNotFoundError) as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except (WalletListEmpty, TierOutOfRange) as exc:
        logger.error("Fatal: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
