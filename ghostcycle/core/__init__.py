from ghostcycle.core.exceptions import (
    ConfirmationTimeout,
    FetchError,
    InsufficientGas,
    ProviderMisconfigured,
    RpcError,
    TierOutOfRange,
    TransactionError,
    UpstreamBadResponse,
    UpstreamError,
    UpstreamRateLimited,
    WalletListEmpty,
)
from ghostcycle.core.fixtures import load_fixture, load_json_fixture, validate_fixture
from ghostcycle.core.request_spec import JsonRpcSpec

__all__ = [
    "ConfirmationTimeout",
    "FetchError",
    "InsufficientGas",
    "JsonRpcSpec",
    "ProviderMisconfigured",
    "RpcError",
    "TierOutOfRange",
    "TransactionError",
    "UpstreamBadResponse",
    "UpstreamError",
    "UpstreamRateLimited",
    "WalletListEmpty",
    "load_fixture",
    "load_json_fixture",
    "validate_fixture",
]
