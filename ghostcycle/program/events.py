from __future__ import annotations

import base64
import binascii
import struct
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from ghostcycle.program.layouts import DISCRIMINATOR_SIZE, anchor_discriminator

PROGRAM_DATA_PREFIX = "Program data: "
CLAIM_EVENT = "GhostClaimEvent"

_CLAIM_EVENT = struct.Struct("<QqQ")


class ClaimEvent(BaseModel):
    amount: int
    next_claim_time: int
    next_claim_amount: int

    model_config = ConfigDict(frozen=True)


def parse_claim_event(logs: Iterable[str]) -> Optional[ClaimEvent]:
    """Return the last claim event emitted in ``logs``, if any."""
    discriminator = anchor_discriminator("event", CLAIM_EVENT)
    found: Optional[ClaimEvent] = None
    for line in logs:
        if not line.startswith(PROGRAM_DATA_PREFIX):
            continue
        try:
            raw = base64.b64decode(line[len(PROGRAM_DATA_PREFIX):].strip(), validate=True)
        except (binascii.Error, ValueError):
            continue
        if raw[:DISCRIMINATOR_SIZE] != discriminator:
            continue
        body = raw[DISCRIMINATOR_SIZE:]
        if len(body) < _CLAIM_EVENT.size:
            continue
        amount, next_time, next_amount = _CLAIM_EVENT.unpack_from(body)
        found = ClaimEvent(amount=amount, next_claim_time=next_time, next_claim_amount=next_amount)
    return found


__all__ = ["CLAIM_EVENT", "ClaimEvent", "PROGRAM_DATA_PREFIX", "parse_claim_event"]
