from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, List, Optional

import httpx
from solders.hash import Hash
from solders.instruction import Instruction
from solders.keypair import Keypair
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ghostcycle.core.exceptions import InsufficientGas, RpcError, TransactionError, UpstreamError
from ghostcycle.engine.decision import ACTION_MINT, ACTION_UPGRADE, Decision
from ghostcycle.engine.settings import CycleSettings
from ghostcycle.engine.snapshot import WalletSnapshot
from ghostcycle.program.addresses import ProgramSettings
from ghostcycle.program.instructions import (
    create_holding_account_instruction,
    mint_instruction,
    priority_fee_instruction,
    upgrade_instruction,
)
from ghostcycle.rpc.client import CircuitBreakerOpen
from ghostcycle.rpc.ledger import LedgerClient
from ghostcycle.wallets import short_address

logger = logging.getLogger(__name__)

LABEL_CREATE_HOLDING = "create_holding_account"
LABEL_PRIORITY_FEE = "priority_fee"
LABEL_MINT = "mint"
LABEL_UPGRADE = "upgrade"


@dataclass
class InstructionSet:
    action: str
    payer: Pubkey
    instructions: List[Instruction] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)

    def add(self, label: str, instruction: Instruction) -> None:
        self.labels.append(label)
        self.instructions.append(instruction)

    def __len__(self) -> int:
        return len(self.instructions)


class ActionExecutor:
    def __init__(
        self,
        ledger: LedgerClient,
        program: ProgramSettings,
        settings: Optional[CycleSettings] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.ledger = ledger
        self.program = program
        self.settings = settings or CycleSettings()
        self._sleep = sleep

    def check_gas(self, snapshot: WalletSnapshot) -> None:
        required = self.settings.min_native_balance
        if snapshot.native_balance < required:
            raise InsufficientGas(snapshot.native_balance, required)

    def build_mint(self, snapshot: WalletSnapshot) -> InstructionSet:
        owner = Pubkey.from_string(snapshot.address)
        ix_set = InstructionSet(action=ACTION_MINT, payer=owner)
        if not snapshot.holding_account_exists:
            ix_set.add(LABEL_CREATE_HOLDING, create_holding_account_instruction(owner, self.program))
        ix_set.add(LABEL_PRIORITY_FEE, priority_fee_instruction(self.settings.compute_unit_price_micro_lamports))
        ix_set.add(LABEL_MINT, mint_instruction(owner, self.program))
        return ix_set

    def build_upgrade(self, snapshot: WalletSnapshot, required_stake: int) -> InstructionSet:
        owner = Pubkey.from_string(snapshot.address)
        ix_set = InstructionSet(action=ACTION_UPGRADE, payer=owner)
        ix_set.add(LABEL_PRIORITY_FEE, priority_fee_instruction(self.settings.compute_unit_price_micro_lamports))
        ix_set.add(LABEL_UPGRADE, upgrade_instruction(owner, required_stake, self.program))
        return ix_set

    async def submit(self, ix_set: InstructionSet, signer: Keypair) -> str:
        if signer.pubkey() != ix_set.payer:
            raise TransactionError("Signer does not match the instruction set fee payer")
        latest = await self.ledger.get_latest_blockhash()
        blockhash = Hash.from_string(latest.blockhash)
        message = Message.new_with_blockhash(ix_set.instructions, ix_set.payer, blockhash)
        tx = Transaction([signer], message, blockhash)
        signature = str(tx.signatures[0])

        try:
            await self.ledger.send_raw_transaction(bytes(tx))
        except RpcError as exc:
            raise TransactionError(f"Broadcast rejected: {exc}", logs=exc.logs, signature=signature) from exc
        logger.info("%s %s submitted: %s", short_address(ix_set.payer), ix_set.action, signature)

        status = await self.ledger.confirm_transaction(
            signature,
            timeout_sec=self.settings.confirm_timeout_sec,
            poll_interval_sec=self.settings.confirm_poll_sec,
            sleep=self._sleep,
        )
        if status.err is not None:
            logs = await self._failure_logs(signature)
            raise TransactionError(f"Transaction failed on-chain: {status.err}", logs=logs, signature=signature)
        return signature

    async def execute(self, decision: Decision, snapshot: WalletSnapshot, signer: Keypair) -> Optional[str]:
        if decision.action == ACTION_MINT:
            self.check_gas(snapshot)
            return await self.submit(self.build_mint(snapshot), signer)
        if decision.action == ACTION_UPGRADE:
            return await self.submit(self.build_upgrade(snapshot, decision.required_stake or 0), signer)
        return None

    async def _failure_logs(self, signature: str) -> List[str]:
        """Poll getTransaction until the failed transaction is served.

        The status reports the error at the processed commitment, getTransaction
        only answers at confirmed, so the first lookups usually return nothing.
        """
        poll = max(self.settings.confirm_poll_sec, 0.1)
        attempts = max(1, int(self.settings.confirm_timeout_sec / poll))
        for attempt in range(1, attempts + 1):
            try:
                logs = await self.ledger.get_transaction_logs(signature)
            except (UpstreamError, httpx.HTTPError, CircuitBreakerOpen) as exc:
                logger.debug("Could not load logs for %s: %s", signature, exc)
                return []
            if logs is not None:
                return logs
            if attempt < attempts:
                await self._sleep(poll)
        logger.warning("No logs for %s after %d lookups", signature, attempts)
        return []


__all__ = [
    "ActionExecutor",
    "InstructionSet",
    "LABEL_CREATE_HOLDING",
    "LABEL_MINT",
    "LABEL_PRIORITY_FEE",
    "LABEL_UPGRADE",
]
