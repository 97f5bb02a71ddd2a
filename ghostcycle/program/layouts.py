"""Decoders for the program's Anchor accounts.

Every account starts with an 8-byte discriminator, ``sha256("account:<Name>")[:8]``,
followed by the Borsh-encoded fields in declaration order.
"""
from __future__ import annotations

import hashlib
import struct
from typing import List

from pydantic import BaseModel, ConfigDict, Field

DISCRIMINATOR_SIZE = 8

_SYSTEM_HEADER = struct.Struct("<QQQQQI")
_USER_SUMMARY = struct.Struct("<32sBBQQQqq")


class AccountLayoutError(ValueError):
    pass


def anchor_discriminator(namespace: str, name: str) -> bytes:
    return hashlib.sha256(f"{namespace}:{name}".encode("utf-8")).digest()[:DISCRIMINATOR_SIZE]


def _strip_discriminator(data: bytes, account_name: str) -> bytes:
    expected = anchor_discriminator("account", account_name)
    if len(data) < DISCRIMINATOR_SIZE or data[:DISCRIMINATOR_SIZE] != expected:
        raise AccountLayoutError(f"{account_name}: discriminator mismatch")
    return data[DISCRIMINATOR_SIZE:]


class GhostSystemAccount(BaseModel):
    total_minted: int
    total_mint_events: int
    total_staked: int
    total_claimed: int
    unique_users: int
    level_user_counts: List[int] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def decode(cls, data: bytes) -> "GhostSystemAccount":
        body = _strip_discriminator(data, "GhostSystem")
        if len(body) < _SYSTEM_HEADER.size:
            raise AccountLayoutError("GhostSystem: account too short")
        minted, events, staked, claimed, users, count = _SYSTEM_HEADER.unpack_from(body)
        end = _SYSTEM_HEADER.size + 8 * count
        if len(body) < end:
            raise AccountLayoutError("GhostSystem: level counts truncated")
        counts = list(struct.unpack_from(f"<{count}Q", body, _SYSTEM_HEADER.size))
        return cls(
            total_minted=minted,
            total_mint_events=events,
            total_staked=staked,
            total_claimed=claimed,
            unique_users=users,
            level_user_counts=counts,
        )


class GhostUserSummaryAccount(BaseModel):
    owner: bytes
    level: int
    minted_times: int
    staked_amount: int
    claimed_amount: int
    pending_reward: int
    last_update_ts: int
    next_claim_time: int

    model_config = ConfigDict(frozen=True)

    @classmethod
    def decode(cls, data: bytes) -> "GhostUserSummaryAccount":
        body = _strip_discriminator(data, "GhostUserSummary")
        if len(body) < _USER_SUMMARY.size:
            raise AccountLayoutError("GhostUserSummary: account too short")
        owner, level, minted, staked, claimed, pending, updated, next_claim = _USER_SUMMARY.unpack_from(body)
        return cls(
            owner=owner,
            level=level,
            minted_times=minted,
            staked_amount=staked,
            claimed_amount=claimed,
            pending_reward=pending,
            last_update_ts=updated,
            next_claim_time=next_claim,
        )


__all__ = [
    "AccountLayoutError",
    "GhostSystemAccount",
    "GhostUserSummaryAccount",
    "anchor_discriminator",
]
