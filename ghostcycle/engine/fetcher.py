from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import httpx
from pydantic import ValidationError
from solders.hash import Hash
from solders.message import Message
from solders.pubkey import Pubkey
from solders.transaction import Transaction

from ghostcycle.core.exceptions import FetchError, UpstreamBadResponse, UpstreamError
from ghostcycle.engine.snapshot import SystemSnapshot, WalletSnapshot
from ghostcycle.program.addresses import ProgramSettings
from ghostcycle.program.events import parse_claim_event
from ghostcycle.program.instructions import claim_instruction
from ghostcycle.program.layouts import AccountLayoutError, GhostSystemAccount, GhostUserSummaryAccount
from ghostcycle.rpc.client import CircuitBreakerOpen
from ghostcycle.rpc.ledger import LedgerClient
from ghostcycle.wallets import short_address

logger = logging.getLogger(__name__)

_FETCH_FAILURES = (
    UpstreamError,
    httpx.HTTPError,
    CircuitBreakerOpen,
    AccountLayoutError,
    ValidationError,
)


@dataclass(frozen=True)
class FetchedState:
    system: SystemSnapshot
    wallet: WalletSnapshot


class StateFetcher:
    def __init__(self, ledger: LedgerClient, program: ProgramSettings) -> None:
        self.ledger = ledger
        self.program = program

    async def fetch(self, owner: Pubkey) -> WalletSnapshot:
        state = await self.fetch_with_system(owner)
        return state.wallet

    async def fetch_with_system(self, owner: Pubkey) -> FetchedState:
        try:
            return await self._fetch_with_system(owner)
        except FetchError:
            raise
        except _FETCH_FAILURES as exc:
            raise FetchError(f"{short_address(owner)}: state fetch failed: {exc}") from exc

    async def _fetch_with_system(self, owner: Pubkey) -> FetchedState:
        reads = [
            asyncio.ensure_future(self.ledger.get_account_info(str(self.program.system_address()))),
            asyncio.ensure_future(self.ledger.get_account_info(str(self.program.user_summary_address(owner)))),
            asyncio.ensure_future(
                self.ledger.get_token_account_balance(str(self.program.holding_account_address(owner)))
            ),
            asyncio.ensure_future(self.ledger.get_balance(str(owner))),
        ]
        try:
            system_data, summary_data, token_balance, native_balance = await asyncio.gather(*reads)
        except BaseException:
            # gather leaves the other reads running after the first failure
            for read in reads:
                read.cancel()
            raise
        if system_data is None:
            raise FetchError("System account not found; check the configured program id")
        system = SystemSnapshot.from_account(GhostSystemAccount.decode(system_data))

        summary: Optional[GhostUserSummaryAccount] = None
        if summary_data is not None:
            summary = GhostUserSummaryAccount.decode(summary_data)

        unclaimed, next_time, next_amount = 0, 0, 0
        if summary is not None:
            unclaimed, next_time, next_amount = await self._estimate_claim(owner, summary)

        wallet = WalletSnapshot.build(
            address=str(owner),
            summary=summary,
            token_balance=token_balance,
            native_balance=native_balance,
            unclaimed_estimate=unclaimed,
            next_claim_time=next_time,
            next_claim_amount=next_amount,
        )
        return FetchedState(system=system, wallet=wallet)

    async def _estimate_claim(self, owner: Pubkey, summary: GhostUserSummaryAccount) -> Tuple[int, int, int]:
        fallback = (summary.pending_reward, summary.next_claim_time, 0)
        message = Message.new_with_blockhash([claim_instruction(owner, self.program)], owner, Hash.default())
        raw_tx = bytes(Transaction.new_unsigned(message))
        try:
            simulation = await self.ledger.simulate_transaction(raw_tx)
        except UpstreamBadResponse as exc:
            logger.warning("%s claim simulation rejected: %s", short_address(owner), exc)
            return fallback
        if simulation.err is not None:
            logger.debug("%s claim simulation error: %s", short_address(owner), simulation.err)
            return fallback
        event = parse_claim_event(simulation.logs or [])
        if event is None:
            return fallback
        return event.amount, event.next_claim_time, event.next_claim_amount


__all__ = ["FetchedState", "StateFetcher"]
