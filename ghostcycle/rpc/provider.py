from __future__ import annotations

import asyncio
import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Type, TypeVar

from pydantic import ValidationError

from ghostcycle.config import env_override
from ghostcycle.core.exceptions import ConfirmationTimeout, ProviderMisconfigured, RpcError, UpstreamBadResponse
from ghostcycle.rpc.client import SolanaHttpClient
from ghostcycle.rpc.request_factory import SolanaRpcRequestFactory
from ghostcycle.rpc.schemas import (
    AccountInfoResult,
    BalanceResult,
    BlockhashResult,
    BlockhashValue,
    RpcResponse,
    SignatureStatus,
    SignatureStatusesResult,
    SimulationResult,
    SimulationValue,
    TokenBalanceResult,
    TransactionResult,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COMMITMENT_RANK = {"processed": 0, "confirmed": 1, "finalized": 2}
_ACCOUNT_NOT_FOUND = "could not find account"


@dataclass(frozen=True)
class RpcSettings:
    url: str
    commitment: str = "processed"
    timeout_sec: float = 10.0
    rps: float = 5.0
    max_retries: int = 3
    backoff_base: float = 0.5
    backoff_max: float = 8.0

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "RpcSettings":
        rpc_cfg = cfg.get("rpc", {}) or {}
        return cls(
            url=str(env_override("GHOSTCYCLE_RPC_URL", rpc_cfg.get("url", "https://api.mainnet-beta.solana.com"))),
            commitment=str(rpc_cfg.get("commitment", "processed")),
            timeout_sec=float(rpc_cfg.get("timeout_sec", 10.0)),
            rps=float(rpc_cfg.get("rps", 5.0)),
            max_retries=int(rpc_cfg.get("max_retries", 3)),
            backoff_base=float(rpc_cfg.get("backoff_base", 0.5)),
            backoff_max=float(rpc_cfg.get("backoff_max", 8.0)),
        )


def _validate_model(payload: Any, model: Type[T], context: str) -> T:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise UpstreamBadResponse(f"RPC {context} response invalid") from exc


def _is_account_not_found(exc: RpcError) -> bool:
    return _ACCOUNT_NOT_FOUND in str(exc).lower()


class SolanaRpcProvider:
    def __init__(self, settings: RpcSettings, http_client: Optional[SolanaHttpClient] = None) -> None:
        self.settings = settings
        self.request_factory = SolanaRpcRequestFactory(settings.url, commitment=settings.commitment)
        self._client = http_client or SolanaHttpClient(
            timeout=settings.timeout_sec,
            rps=settings.rps,
            max_retries=settings.max_retries,
            backoff_base=settings.backoff_base,
            backoff_max=settings.backoff_max,
        )
        self._owns_client = http_client is None

    async def __aenter__(self) -> "SolanaRpcProvider":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_client:
            await self._client.__aexit__(exc_type, exc, tb)

    async def _call(self, spec) -> Any:
        payload = await self._client.request(spec)
        if isinstance(payload, dict) and payload.get("error"):
            error = payload["error"]
            if isinstance(error, dict):
                raise RpcError(
                    f"{spec.rpc_method}: {error.get('message', 'RPC error')}",
                    code=error.get("code"),
                    data=error.get("data"),
                )
            raise RpcError(f"{spec.rpc_method}: {error}")
        response = _validate_model(payload, RpcResponse, spec.rpc_method)
        return response.result

    async def get_account_info(self, address: str) -> Optional[bytes]:
        """Raw account data, or None when the account does not exist."""
        result = await self._call(self.request_factory.get_account_info(address))
        info = _validate_model(result, AccountInfoResult, "getAccountInfo")
        if info.value is None:
            return None
        try:
            return info.value.raw_data()
        except ValueError as exc:
            raise UpstreamBadResponse("getAccountInfo returned undecodable data") from exc

    async def get_balance(self, address: str) -> int:
        result = await self._call(self.request_factory.get_balance(address))
        return _validate_model(result, BalanceResult, "getBalance").value

    async def get_token_account_balance(self, address: str) -> Optional[int]:
        """Token balance in base units, or None when the token account does not exist."""
        try:
            result = await self._call(self.request_factory.get_token_account_balance(address))
        except RpcError as exc:
            if _is_account_not_found(exc):
                return None
            raise
        balance = _validate_model(result, TokenBalanceResult, "getTokenAccountBalance")
        return int(balance.value.amount)

    async def get_latest_blockhash(self) -> BlockhashValue:
        result = await self._call(self.request_factory.get_latest_blockhash())
        return _validate_model(result, BlockhashResult, "getLatestBlockhash").value

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        encoded = base64.b64encode(raw_tx).decode("ascii")
        result = await self._call(self.request_factory.send_transaction(encoded))
        if not isinstance(result, str):
            raise UpstreamBadResponse("sendTransaction did not return a signature")
        return result

    async def get_signature_statuses(self, signatures: List[str]) -> List[Optional[SignatureStatus]]:
        result = await self._call(self.request_factory.get_signature_statuses(signatures))
        return _validate_model(result, SignatureStatusesResult, "getSignatureStatuses").value

    async def confirm_transaction(
        self,
        signature: str,
        timeout_sec: float = 30.0,
        poll_interval_sec: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> SignatureStatus:
        """Poll until the signature reaches the configured commitment.

        The returned status may carry an ``err``; callers decide what a failed
        transaction means. Raises ConfirmationTimeout when the deadline passes.
        """
        wanted = _COMMITMENT_RANK.get(self.settings.commitment, 0)
        deadline = time.monotonic() + timeout_sec
        while True:
            statuses = await self.get_signature_statuses([signature])
            status = statuses[0] if statuses else None
            if status is not None:
                reached = _COMMITMENT_RANK.get(status.confirmation_status or "processed", 0)
                if status.err is not None or reached >= wanted:
                    return status
            if time.monotonic() >= deadline:
                raise ConfirmationTimeout(
                    f"Transaction {signature} not confirmed within {timeout_sec:.0f}s", signature=signature
                )
            await sleep(poll_interval_sec)

    async def simulate_transaction(self, raw_tx: bytes) -> SimulationValue:
        encoded = base64.b64encode(raw_tx).decode("ascii")
        result = await self._call(self.request_factory.simulate_transaction(encoded))
        return _validate_model(result, SimulationResult, "simulateTransaction").value

    async def get_transaction_logs(self, signature: str) -> Optional[List[str]]:
        """Program logs of a landed transaction, or None while the node cannot serve it yet."""
        result = await self._call(self.request_factory.get_transaction(signature))
        if result is None:
            return None
        tx = _validate_model(result, TransactionResult, "getTransaction")
        if tx.meta is None:
            return []
        return list(tx.meta.log_messages or [])


def get_rpc_provider(cfg: Dict[str, Any], http_client: Optional[SolanaHttpClient] = None) -> SolanaRpcProvider:
    try:
        settings = RpcSettings.from_config(cfg)
    except (TypeError, ValueError) as exc:
        raise ProviderMisconfigured(f"Invalid rpc settings in config: {exc}") from exc
    logger.debug("RPC endpoint %s (%s)", settings.url, settings.commitment)
    return SolanaRpcProvider(settings, http_client=http_client)


__all__ = ["RpcSettings", "SolanaRpcProvider", "get_rpc_provider"]
