from __future__ import annotations

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console
from solders.keypair import Keypair

from ghostcycle.core.exceptions import FetchError, InsufficientGas, TierOutOfRange, TransactionError
from ghostcycle.engine.decision import ACTION_INSUFFICIENT_FUNDS, ACTION_MINT, ACTION_UPGRADE, Decision, decide
from ghostcycle.engine.executor import ActionExecutor
from ghostcycle.engine.fetcher import StateFetcher
from ghostcycle.engine.status import print_status
from ghostcycle.tiers import TierTable
from ghostcycle.wallets import keypair_from_secret, short_address

logger = logging.getLogger(__name__)

STATUS_MINTED = "MINTED"
STATUS_UPGRADED = "UPGRADED"
STATUS_WAITING = "WAITING"
STATUS_INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
STATUS_INSUFFICIENT_GAS = "INSUFFICIENT_GAS"
STATUS_FAILED = "FAILED"

STAGE_LOAD_KEY = "load_key"
STAGE_FETCH = "fetch"
STAGE_DECIDE = "decide"
STAGE_EXECUTE = "execute"

_EXECUTED_STATUS = {ACTION_MINT: STATUS_MINTED, ACTION_UPGRADE: STATUS_UPGRADED}


class CycleOutcome(BaseModel):
    wallet: str
    status: str
    decision: Optional[Decision] = None
    signature: Optional[str] = None
    stage: Optional[str] = None
    message: Optional[str] = None
    logs: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def failed(self) -> bool:
        return self.status == STATUS_FAILED


class WalletCycleRunner:
    """One fetch → decide → execute pass for a single wallet.

    Every failure inside the pass becomes a CycleOutcome so one wallet never
    stops the fleet. TierOutOfRange is the exception: it means the tier table
    does not match the program and is re-raised.
    """

    def __init__(
        self,
        fetcher: StateFetcher,
        executor: ActionExecutor,
        tiers: TierTable,
        console: Optional[Console] = None,
    ) -> None:
        self.fetcher = fetcher
        self.executor = executor
        self.tiers = tiers
        self.console = console or Console()

    async def run(self, secret: Union[str, Keypair]) -> CycleOutcome:
        stage = STAGE_LOAD_KEY
        wallet = "?"
        decision: Optional[Decision] = None
        try:
            signer = secret if isinstance(secret, Keypair) else keypair_from_secret(secret)
            wallet = str(signer.pubkey())
            logger.info("Processing wallet %s", wallet)

            stage = STAGE_FETCH
            state = await self.fetcher.fetch_with_system(signer.pubkey())

            print_status(self.console, state.system, state.wallet, self.tiers)

            stage = STAGE_DECIDE
            decision = decide(state.wallet, self.tiers)
            logger.info("%s decision: %s", short_address(wallet), decision.describe())

            if not decision.executable:
                status = STATUS_INSUFFICIENT_FUNDS if decision.action == ACTION_INSUFFICIENT_FUNDS else STATUS_WAITING
                return CycleOutcome(wallet=wallet, status=status, decision=decision, stage=stage)

            stage = STAGE_EXECUTE
            signature = await self.executor.execute(decision, state.wallet, signer)
            logger.info("%s %s confirmed: %s", short_address(wallet), decision.action, signature)
            return CycleOutcome(
                wallet=wallet,
                status=_EXECUTED_STATUS[decision.action],
                decision=decision,
                signature=signature,
                stage=stage,
            )
        except TierOutOfRange:
            raise
        except InsufficientGas as exc:
            logger.warning("%s skipped, insufficient SOL: short %d lamports", short_address(wallet), exc.shortfall)
            return CycleOutcome(
                wallet=wallet, status=STATUS_INSUFFICIENT_GAS, decision=decision, stage=stage, message=str(exc)
            )
        except TransactionError as exc:
            logger.error("%s transaction failed at %s: %s", short_address(wallet), stage, exc)
            for line in exc.logs:
                logger.error("  %s", line)
            return CycleOutcome(
                wallet=wallet,
                status=STATUS_FAILED,
                decision=decision,
                signature=exc.signature,
                stage=stage,
                message=str(exc),
                logs=exc.logs,
            )
        except FetchError as exc:
            logger.error("%s fetch failed: %s", short_address(wallet), exc)
            return CycleOutcome(wallet=wallet, status=STATUS_FAILED, stage=stage, message=str(exc))
        except Exception as exc:
            logger.error("%s failed at %s: %s", short_address(wallet), stage, exc, exc_info=True)
            return CycleOutcome(wallet=wallet, status=STATUS_FAILED, decision=decision, stage=stage, message=str(exc))


__all__ = [
    "CycleOutcome",
    "STATUS_FAILED",
    "STATUS_INSUFFICIENT_FUNDS",
    "STATUS_INSUFFICIENT_GAS",
    "STATUS_MINTED",
    "STATUS_UPGRADED",
    "STATUS_WAITING",
    "WalletCycleRunner",
]
