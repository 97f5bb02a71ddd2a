from __future__ import annotations

import struct

from solders.compute_budget import set_compute_unit_price
from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey
from solders.system_program import ID as SYSTEM_PROGRAM_ID
from spl.token.constants import ASSOCIATED_TOKEN_PROGRAM_ID, TOKEN_PROGRAM_ID
from spl.token.instructions import create_associated_token_account

from ghostcycle.program.addresses import ProgramSettings
from ghostcycle.program.layouts import anchor_discriminator

IX_MINT = "ghostx_mint"
IX_UPGRADE = "ghostx_upgrade"
IX_CLAIM = "ghostx_claim"


def _user_accounts(owner: Pubkey, settings: ProgramSettings) -> list[AccountMeta]:
    return [
        AccountMeta(pubkey=owner, is_signer=True, is_writable=True),
        AccountMeta(pubkey=settings.user_summary_address(owner), is_signer=False, is_writable=True),
        AccountMeta(pubkey=settings.system_address(), is_signer=False, is_writable=True),
        AccountMeta(pubkey=settings.token_mint, is_signer=False, is_writable=True),
        AccountMeta(pubkey=settings.holding_account_address(owner), is_signer=False, is_writable=True),
    ]


def _program_accounts() -> list[AccountMeta]:
    return [
        AccountMeta(pubkey=TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=ASSOCIATED_TOKEN_PROGRAM_ID, is_signer=False, is_writable=False),
        AccountMeta(pubkey=SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
    ]


def mint_instruction(owner: Pubkey, settings: ProgramSettings) -> Instruction:
    return Instruction(
        program_id=settings.program_id,
        data=anchor_discriminator("global", IX_MINT),
        accounts=_user_accounts(owner, settings) + _program_accounts(),
    )


def upgrade_instruction(owner: Pubkey, stake_amount: int, settings: ProgramSettings) -> Instruction:
    vault = AccountMeta(pubkey=settings.stake_vault_address(), is_signer=False, is_writable=True)
    return Instruction(
        program_id=settings.program_id,
        data=anchor_discriminator("global", IX_UPGRADE) + struct.pack("<Q", stake_amount),
        accounts=_user_accounts(owner, settings) + [vault] + _program_accounts(),
    )


def claim_instruction(owner: Pubkey, settings: ProgramSettings) -> Instruction:
    return Instruction(
        program_id=settings.program_id,
        data=anchor_discriminator("global", IX_CLAIM),
        accounts=_user_accounts(owner, settings) + _program_accounts(),
    )


def create_holding_account_instruction(owner: Pubkey, settings: ProgramSettings) -> Instruction:
    return create_associated_token_account(payer=owner, owner=owner, mint=settings.token_mint)


def priority_fee_instruction(micro_lamports: int) -> Instruction:
    return set_compute_unit_price(micro_lamports)


__all__ = [
    "IX_CLAIM",
    "IX_MINT",
    "IX_UPGRADE",
    "claim_instruction",
    "create_holding_account_instruction",
    "mint_instruction",
    "priority_fee_instruction",
    "upgrade_instruction",
]
