from ghostcycle.program.addresses import ProgramSettings
from ghostcycle.program.events import ClaimEvent, parse_claim_event
from ghostcycle.program.instructions import (
    claim_instruction,
    create_holding_account_instruction,
    mint_instruction,
    priority_fee_instruction,
    upgrade_instruction,
)
from ghostcycle.program.layouts import (
    AccountLayoutError,
    GhostSystemAccount,
    GhostUserSummaryAccount,
    anchor_discriminator,
)

__all__ = [
    "AccountLayoutError",
    "ClaimEvent",
    "GhostSystemAccount",
    "GhostUserSummaryAccount",
    "ProgramSettings",
    "anchor_discriminator",
    "claim_instruction",
    "create_holding_account_instruction",
    "mint_instruction",
    "parse_claim_event",
    "priority_fee_instruction",
    "upgrade_instruction",
]
