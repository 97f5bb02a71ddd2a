from __future__ import annotations

from typing import Any, List, Optional


class ProviderMisconfigured(RuntimeError):
    pass


class UpstreamError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UpstreamRateLimited(UpstreamError):
    def __init__(
        self, message: str, status_code: Optional[int] = None, retry_after: Optional[float] = None
    ) -> None:
        super().__init__(message, status_code=status_code)
        self.retry_after = retry_after


class UpstreamBadResponse(UpstreamError):
    pass


class RpcError(UpstreamBadResponse):
    """JSON-RPC error envelope returned by the ledger node."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None) -> None:
        super().__init__(message)
        self.code = code
        self.data = data

    @property
    def logs(self) -> List[str]:
        if isinstance(self.data, dict):
            logs = self.data.get("logs")
            if isinstance(logs, list):
                return [str(line) for line in logs]
        return []


class FetchError(RuntimeError):
    pass


class TierOutOfRange(LookupError):
    def __init__(self, level: int, max_level: int) -> None:
        super().__init__(f"Tier level {level} outside table range 0..{max_level}")
        self.level = level
        self.max_level = max_level


class TransactionError(RuntimeError):
    def __init__(self, message: str, logs: Optional[List[str]] = None, signature: Optional[str] = None) -> None:
        super().__init__(message)
        self.logs = list(logs or [])
        self.signature = signature


class ConfirmationTimeout(TransactionError):
    pass


class InsufficientGas(RuntimeError):
    def __init__(self, balance: int, required: int) -> None:
        super().__init__(f"Native balance {balance} below required {required} lamports")
        self.balance = balance
        self.required = required

    @property
    def shortfall(self) -> int:
        return max(0, self.required - self.balance)


class WalletListEmpty(RuntimeError):
    pass
