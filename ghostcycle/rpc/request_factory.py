from __future__ import annotations

import itertools
from typing import Any, Dict, List, Optional

from ghostcycle.core.request_spec import JsonRpcSpec


class SolanaRpcRequestFactory:
    def __init__(self, rpc_url: str, commitment: str = "processed") -> None:
        self.rpc_url = rpc_url.rstrip("/")
        self.commitment = commitment
        self._ids = itertools.count(1)

    def build_rpc_request(
        self, method: str, params: Optional[List[Any]] = None, request_id: Optional[int] = None
    ) -> JsonRpcSpec:
        body = {
            "jsonrpc": "2.0",
            "id": request_id if request_id is not None else next(self._ids),
            "method": method,
            "params": params or [],
        }
        return JsonRpcSpec(base_url=self.rpc_url, body=body)

    def _commitment(self, **extra: Any) -> Dict[str, Any]:
        config: Dict[str, Any] = {"commitment": self.commitment}
        config.update(extra)
        return config

    def get_account_info(self, address: str) -> JsonRpcSpec:
        return self.build_rpc_request("getAccountInfo", [address, self._commitment(encoding="base64")])

    def get_balance(self, address: str) -> JsonRpcSpec:
        return self.build_rpc_request("getBalance", [address, self._commitment()])

    def get_token_account_balance(self, address: str) -> JsonRpcSpec:
        return self.build_rpc_request("getTokenAccountBalance", [address, self._commitment()])

    def get_latest_blockhash(self) -> JsonRpcSpec:
        return self.build_rpc_request("getLatestBlockhash", [self._commitment()])

    def send_transaction(self, encoded_tx: str, skip_preflight: bool = True) -> JsonRpcSpec:
        options = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": self.commitment,
        }
        return self.build_rpc_request("sendTransaction", [encoded_tx, options])

    def get_signature_statuses(self, signatures: List[str]) -> JsonRpcSpec:
        return self.build_rpc_request(
            "getSignatureStatuses", [list(signatures), {"searchTransactionHistory": False}]
        )

    def simulate_transaction(self, encoded_tx: str) -> JsonRpcSpec:
        options = self._commitment(encoding="base64", sigVerify=False, replaceRecentBlockhash=True)
        return self.build_rpc_request("simulateTransaction", [encoded_tx, options])

    def get_transaction(self, signature: str) -> JsonRpcSpec:
        # getTransaction rejects "processed"
        options = {"encoding": "json", "commitment": "confirmed", "maxSupportedTransactionVersion": 0}
        return self.build_rpc_request("getTransaction", [signature, options])


__all__ = ["SolanaRpcRequestFactory"]
