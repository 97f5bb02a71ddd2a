from __future__ import annotations

import base64
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RpcResponse(BaseModel):
    jsonrpc: str
    id: int
    result: Any = None

    model_config = ConfigDict(extra="allow")


class RpcContext(BaseModel):
    slot: int

    model_config = ConfigDict(extra="allow")


class AccountInfoValue(BaseModel):
    data: List[str]
    executable: bool = False
    lamports: int
    owner: str
    rent_epoch: Optional[int] = Field(default=None, alias="rentEpoch")
    space: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    def raw_data(self) -> bytes:
        encoded = self.data[0] if self.data else ""
        return base64.b64decode(encoded)


class AccountInfoResult(BaseModel):
    context: RpcContext
    value: Optional[AccountInfoValue] = None


class BalanceResult(BaseModel):
    context: RpcContext
    value: int


class RpcTokenAmount(BaseModel):
    amount: str
    decimals: int
    ui_amount: Optional[float] = Field(default=None, alias="uiAmount")
    ui_amount_string: Optional[str] = Field(default=None, alias="uiAmountString")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TokenBalanceResult(BaseModel):
    context: RpcContext
    value: RpcTokenAmount


class BlockhashValue(BaseModel):
    blockhash: str
    last_valid_block_height: int = Field(alias="lastValidBlockHeight")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class BlockhashResult(BaseModel):
    context: RpcContext
    value: BlockhashValue


class SignatureStatus(BaseModel):
    slot: int
    confirmations: Optional[int] = None
    err: Optional[Any] = None
    confirmation_status: Optional[str] = Field(default=None, alias="confirmationStatus")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SignatureStatusesResult(BaseModel):
    context: RpcContext
    value: List[Optional[SignatureStatus]] = Field(default_factory=list)


class SimulationValue(BaseModel):
    err: Optional[Any] = None
    logs: Optional[List[str]] = None
    units_consumed: Optional[int] = Field(default=None, alias="unitsConsumed")
    return_data: Optional[Any] = Field(default=None, alias="returnData")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class SimulationResult(BaseModel):
    context: RpcContext
    value: SimulationValue


class TransactionMeta(BaseModel):
    err: Optional[Any] = None
    fee: Optional[int] = None
    log_messages: Optional[List[str]] = Field(default=None, alias="logMessages")

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class TransactionResult(BaseModel):
    slot: int
    block_time: Optional[int] = Field(default=None, alias="blockTime")
    meta: Optional[TransactionMeta] = None

    model_config = ConfigDict(populate_by_name=True, extra="allow")


__all__ = [
    "AccountInfoResult",
    "AccountInfoValue",
    "BalanceResult",
    "BlockhashResult",
    "BlockhashValue",
    "RpcContext",
    "RpcResponse",
    "RpcTokenAmount",
    "SignatureStatus",
    "SignatureStatusesResult",
    "SimulationResult",
    "SimulationValue",
    "TokenBalanceResult",
    "TransactionMeta",
    "TransactionResult",
]
