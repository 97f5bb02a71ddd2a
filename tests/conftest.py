import io
import struct
from pathlib import Path
from typing import Dict, List, Optional, Set

import httpx
import pytest
from rich.console import Console
from solders.hash import Hash
from solders.pubkey import Pubkey

from ghostcycle.program.addresses import DEFAULT_TOKEN_MINT, ProgramSettings
from ghostcycle.program.events import CLAIM_EVENT, ClaimEvent
from ghostcycle.program.layouts import GhostSystemAccount, GhostUserSummaryAccount, anchor_discriminator
from ghostcycle.rpc.schemas import BlockhashValue, SignatureStatus, SimulationValue

FIXTURE_DIR = Path(__file__).parent / "fixtures"


class FakeLedger:
    def __init__(self) -> None:
        self.accounts: Dict[str, bytes] = {}
        self.token_balances: Dict[str, int] = {}
        self.balances: Dict[str, int] = {}
        self.simulation = SimulationValue(err=None, logs=[])
        self.blockhash = str(Hash.new_unique())
        self.sent: List[bytes] = []
        self.simulated: List[bytes] = []
        self.send_error: Optional[Exception] = None
        self.confirm_error: Optional[Exception] = None
        self.status_err = None
        self.tx_logs: List[str] = []
        self.pending_tx_lookups = 0
        self.unreachable: Set[str] = set()
        self.calls: List[str] = []

    def _check(self, method: str, address: str) -> None:
        self.calls.append(method)
        if address in self.unreachable:
            raise httpx.ConnectError(f"{method} unreachable")

    async def get_account_info(self, address: str) -> Optional[bytes]:
        self._check("getAccountInfo", address)
        return self.accounts.get(address)

    async def get_balance(self, address: str) -> int:
        self._check("getBalance", address)
        return self.balances.get(address, 0)

    async def get_token_account_balance(self, address: str) -> Optional[int]:
        self._check("getTokenAccountBalance", address)
        return self.token_balances.get(address)

    async def get_latest_blockhash(self) -> BlockhashValue:
        self.calls.append("getLatestBlockhash")
        return BlockhashValue(blockhash=self.blockhash, last_valid_block_height=1000)

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        self.calls.append("sendTransaction")
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(raw_tx)
        return "submitted"

    async def confirm_transaction(self, signature, timeout_sec=30.0, poll_interval_sec=1.0, sleep=None):
        self.calls.append("confirmTransaction")
        if self.confirm_error is not None:
            raise self.confirm_error
        return SignatureStatus(slot=1, err=self.status_err, confirmation_status="processed")

    async def simulate_transaction(self, raw_tx: bytes) -> SimulationValue:
        self.calls.append("simulateTransaction")
        self.simulated.append(raw_tx)
        return self.simulation

    async def get_transaction_logs(self, signature: str) -> Optional[List[str]]:
        self.calls.append("getTransaction")
        if self.pending_tx_lookups > 0:
            self.pending_tx_lookups -= 1
            return None
        return list(self.tx_logs)

    def network_calls(self) -> int:
        return len(self.calls)


class SleepRecorder:
    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


def make_system(**overrides) -> GhostSystemAccount:
    values = dict(
        total_minted=5_000_000_000_000,
        total_mint_events=1234,
        total_staked=900_000_000_000,
        total_claimed=12_000_000_000,
        unique_users=321,
        level_user_counts=[200, 80, 30, 8, 3, 0, 0],
    )
    values.update(overrides)
    return GhostSystemAccount(**values)


def make_summary(owner: Pubkey, **overrides) -> GhostUserSummaryAccount:
    values = dict(
        owner=bytes(owner),
        level=0,
        minted_times=0,
        staked_amount=0,
        claimed_amount=0,
        pending_reward=0,
        last_update_ts=1_700_000_000,
        next_claim_time=1_700_003_600,
    )
    values.update(overrides)
    return GhostUserSummaryAccount(**values)


def encode_system(system: GhostSystemAccount) -> bytes:
    counts = system.level_user_counts
    header = struct.pack(
        "<QQQQQI",
        system.total_minted,
        system.total_mint_events,
        system.total_staked,
        system.total_claimed,
        system.unique_users,
        len(counts),
    )
    return anchor_discriminator("account", "GhostSystem") + header + struct.pack(f"<{len(counts)}Q", *counts)


def encode_summary(summary: GhostUserSummaryAccount) -> bytes:
    body = struct.pack(
        "<32sBBQQQqq",
        summary.owner,
        summary.level,
        summary.minted_times,
        summary.staked_amount,
        summary.claimed_amount,
        summary.pending_reward,
        summary.last_update_ts,
        summary.next_claim_time,
    )
    return anchor_discriminator("account", "GhostUserSummary") + body


def encode_claim_event(event: ClaimEvent) -> bytes:
    body = struct.pack("<QqQ", event.amount, event.next_claim_time, event.next_claim_amount)
    return anchor_discriminator("event", CLAIM_EVENT) + body


def seed_system(ledger: FakeLedger, program: ProgramSettings, system: Optional[GhostSystemAccount] = None) -> None:
    ledger.accounts[str(program.system_address())] = encode_system(system or make_system())


def seed_wallet(
    ledger: FakeLedger,
    program: ProgramSettings,
    owner: Pubkey,
    summary: Optional[GhostUserSummaryAccount] = None,
    token_balance: Optional[int] = None,
    native_balance: int = 10_000_000,
) -> None:
    if summary is not None:
        ledger.accounts[str(program.user_summary_address(owner))] = encode_summary(summary)
    if token_balance is not None:
        ledger.token_balances[str(program.holding_account_address(owner))] = token_balance
    ledger.balances[str(owner)] = native_balance


@pytest.fixture
def program() -> ProgramSettings:
    return ProgramSettings(program_id=Pubkey.new_unique(), token_mint=Pubkey.from_string(DEFAULT_TOKEN_MINT))


@pytest.fixture
def ledger() -> FakeLedger:
    return FakeLedger()


@pytest.fixture
def quiet_console() -> Console:
    return Console(file=io.StringIO(), width=120)
