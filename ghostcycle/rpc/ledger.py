from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional, Protocol

from ghostcycle.rpc.schemas import BlockhashValue, SignatureStatus, SimulationValue


class LedgerClient(Protocol):
    async def get_account_info(self, address: str) -> Optional[bytes]:
        ...

    async def get_balance(self, address: str) -> int:
        ...

    async def get_token_account_balance(self, address: str) -> Optional[int]:
        ...

    async def get_latest_blockhash(self) -> BlockhashValue:
        ...

    async def send_raw_transaction(self, raw_tx: bytes) -> str:
        ...

    async def confirm_transaction(
        self,
        signature: str,
        timeout_sec: float = 30.0,
        poll_interval_sec: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = ...,
    ) -> SignatureStatus:
        ...

    async def simulate_transaction(self, raw_tx: bytes) -> SimulationValue:
        ...

    async def get_transaction_logs(self, signature: str) -> Optional[List[str]]:
        ...


__all__ = ["LedgerClient"]
