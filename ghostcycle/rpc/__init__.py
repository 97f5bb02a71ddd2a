from ghostcycle.rpc.client import CircuitBreakerOpen, SolanaHttpClient
from ghostcycle.rpc.provider import RpcSettings, SolanaRpcProvider, get_rpc_provider
from ghostcycle.rpc.request_factory import SolanaRpcRequestFactory

__all__ = [
    "CircuitBreakerOpen",
    "RpcSettings",
    "SolanaHttpClient",
    "SolanaRpcProvider",
    "SolanaRpcRequestFactory",
    "get_rpc_provider",
]
