import asyncio
import json

import httpx
import pytest
from solders.compute_budget import set_compute_unit_price
from solders.keypair import Keypair
from solders.transaction import Transaction

from ghostcycle.core.exceptions import ConfirmationTimeout, InsufficientGas, RpcError, TransactionError
from ghostcycle.core.fixtures import load_fixture
from ghostcycle.engine.decision import mint, upgrade, wait
from ghostcycle.engine.executor import (
    LABEL_CREATE_HOLDING,
    LABEL_MINT,
    LABEL_PRIORITY_FEE,
    LABEL_UPGRADE,
    ActionExecutor,
)
from ghostcycle.engine.settings import CycleSettings
from ghostcycle.engine.snapshot import WalletSnapshot
from ghostcycle.rpc.client import SolanaHttpClient
from ghostcycle.rpc.provider import RpcSettings, SolanaRpcProvider

from conftest import FIXTURE_DIR, SleepRecorder


def _snapshot(signer: Keypair, **fields) -> WalletSnapshot:
    values = dict(native_balance=10_000_000)
    values.update(fields)
    return WalletSnapshot(address=str(signer.pubkey()), **values)


def test_mint_creates_holding_account_first(ledger, program):
    signer = Keypair()
    ix_set = ActionExecutor(ledger, program).build_mint(_snapshot(signer, holding_account_exists=False))
    assert ix_set.labels == [LABEL_CREATE_HOLDING, LABEL_PRIORITY_FEE, LABEL_MINT]
    assert ix_set.instructions[1] == set_compute_unit_price(38_518)
    assert ix_set.payer == signer.pubkey()


def test_mint_skips_existing_holding_account(ledger, program):
    signer = Keypair()
    ix_set = ActionExecutor(ledger, program).build_mint(_snapshot(signer, holding_account_exists=True))
    assert ix_set.labels == [LABEL_PRIORITY_FEE, LABEL_MINT]
    assert len(ix_set) == 2


def test_upgrade_carries_stake_amount(ledger, program):
    signer = Keypair()
    ix_set = ActionExecutor(ledger, program).build_upgrade(_snapshot(signer, level=1), 5_000_000_000)
    assert ix_set.labels == [LABEL_PRIORITY_FEE, LABEL_UPGRADE]
    assert bytes(ix_set.instructions[1].data)[8:] == (5_000_000_000).to_bytes(8, "little")


def test_gas_floor_blocks_before_any_network_call(ledger, program):
    signer = Keypair()
    executor = ActionExecutor(ledger, program)
    floor = CycleSettings().min_native_balance
    assert floor == 2_039_280 + 5_000
    snapshot = _snapshot(signer, native_balance=floor - 1)
    with pytest.raises(InsufficientGas) as excinfo:
        asyncio.run(executor.execute(mint(), snapshot, signer))
    assert excinfo.value.shortfall == 1
    assert ledger.network_calls() == 0


def test_submit_signs_and_confirms(ledger, program):
    signer = Keypair()
    executor = ActionExecutor(ledger, program)
    signature = asyncio.run(executor.execute(mint(), _snapshot(signer), signer))

    assert ledger.calls == ["getLatestBlockhash", "sendTransaction", "confirmTransaction"]
    tx = Transaction.from_bytes(ledger.sent[0])
    assert str(tx.signatures[0]) == signature
    assert str(tx.message.recent_blockhash) == ledger.blockhash
    assert tx.message.account_keys[0] == signer.pubkey()
    assert len(tx.message.instructions) == 3
    tx.verify()


def test_upgrade_execution(ledger, program):
    signer = Keypair()
    signature = asyncio.run(
        ActionExecutor(ledger, program).execute(upgrade(11_000_000_000), _snapshot(signer, level=2), signer)
    )
    assert signature
    assert len(Transaction.from_bytes(ledger.sent[0]).message.instructions) == 2


def test_non_executable_decision_does_nothing(ledger, program):
    signer = Keypair()
    assert asyncio.run(ActionExecutor(ledger, program).execute(wait("max tier reached"), _snapshot(signer), signer)) is None
    assert ledger.network_calls() == 0


def test_broadcast_rejection_keeps_program_logs(ledger, program):
    signer = Keypair()
    ledger.send_error = RpcError(
        "sendTransaction: Transaction simulation failed",
        code=-32002,
        data={"logs": ["Program log: AnchorError occurred. Error Code: InsufficientStake."]},
    )
    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(ActionExecutor(ledger, program).execute(upgrade(2_000_000_000), _snapshot(signer), signer))
    assert excinfo.value.logs == ["Program log: AnchorError occurred. Error Code: InsufficientStake."]
    assert excinfo.value.signature


def test_on_chain_failure_loads_transaction_logs(ledger, program):
    signer = Keypair()
    ledger.status_err = {"InstructionError": [2, {"Custom": 6000}]}
    ledger.tx_logs = ["Program log: AnchorError occurred. Error Code: MintLimitReached."]
    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(ActionExecutor(ledger, program).execute(mint(), _snapshot(signer), signer))
    assert excinfo.value.logs == ledger.tx_logs
    assert "getTransaction" in ledger.calls


def test_failure_logs_wait_until_the_transaction_is_served(ledger, program):
    signer = Keypair()
    ledger.status_err = {"InstructionError": [2, {"Custom": 6000}]}
    ledger.tx_logs = ["Program log: AnchorError occurred. Error Code: MintLimitReached."]
    ledger.pending_tx_lookups = 2
    sleep = SleepRecorder()
    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(ActionExecutor(ledger, program, sleep=sleep).execute(mint(), _snapshot(signer), signer))
    assert excinfo.value.logs == ledger.tx_logs
    assert ledger.calls.count("getTransaction") == 3
    assert sleep.calls == [1.0, 1.0]


def test_failure_log_lookups_are_bounded_by_confirm_timeout(ledger, program):
    signer = Keypair()
    ledger.status_err = {"InstructionError": [2, {"Custom": 6000}]}
    ledger.pending_tx_lookups = 100
    settings = CycleSettings(confirm_timeout_sec=3, confirm_poll_sec=1)
    executor = ActionExecutor(ledger, program, settings=settings, sleep=SleepRecorder())
    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(executor.execute(mint(), _snapshot(signer), signer))
    assert excinfo.value.logs == []
    assert ledger.calls.count("getTransaction") == 3


def test_confirmation_timeout_propagates(ledger, program):
    signer = Keypair()
    ledger.confirm_error = ConfirmationTimeout("not confirmed", signature="sig")
    executor = ActionExecutor(ledger, program, sleep=SleepRecorder())
    with pytest.raises(ConfirmationTimeout):
        asyncio.run(executor.execute(mint(), _snapshot(signer), signer))


def test_signer_must_match_payer(ledger, program):
    owner = Keypair()
    ix_set = ActionExecutor(ledger, program).build_mint(_snapshot(owner))
    with pytest.raises(TransactionError):
        asyncio.run(ActionExecutor(ledger, program).submit(ix_set, Keypair()))
    assert ledger.network_calls() == 0


def test_failure_logs_over_http_after_null_transaction(program):
    fixtures = FIXTURE_DIR / "rpc"
    lookups = []

    def handler(request: httpx.Request) -> httpx.Response:
        method = json.loads(request.content)["method"]
        if method == "getLatestBlockhash":
            return httpx.Response(200, json=load_fixture(fixtures, "getLatestBlockhash_success.json"))
        if method == "sendTransaction":
            return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": "5failedSig"})
        if method == "getSignatureStatuses":
            status = {"slot": 5, "err": {"InstructionError": [2, {"Custom": 6000}]}, "confirmationStatus": "processed"}
            return httpx.Response(
                200, json={"jsonrpc": "2.0", "id": 1, "result": {"context": {"slot": 5}, "value": [status]}}
            )
        if method == "getTransaction":
            lookups.append(request)
            if len(lookups) == 1:
                return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": None})
            return httpx.Response(200, json=load_fixture(fixtures, "getTransaction_failed.json"))
        return httpx.Response(404)

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            client = SolanaHttpClient(rps=1000, async_client=http)
            provider = SolanaRpcProvider(RpcSettings(url="https://rpc.test", commitment="confirmed"), http_client=client)
            executor = ActionExecutor(provider, program, sleep=SleepRecorder())
            return await executor.execute(mint(), _snapshot(signer), signer)

    signer = Keypair()
    with pytest.raises(TransactionError) as excinfo:
        asyncio.run(run())
    expected = load_fixture(fixtures, "getTransaction_failed.json")["result"]["meta"]["logMessages"]
    assert excinfo.value.logs == expected
    assert len(lookups) == 2
