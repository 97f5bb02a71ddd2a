from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from solders.pubkey import Pubkey
from spl.token.instructions import get_associated_token_address

from ghostcycle.config import env_override
from ghostcycle.core.exceptions import ProviderMisconfigured

DEFAULT_TOKEN_MINT = "7EsVJBgkBJ4XwuL1oQPPK4EBicwSFCjcwkSCRHCYbC1G"
USER_SUMMARY_SEED = "GhostUserSummary3"
SYSTEM_SEED = "GhostSystem3"


def _parse_pubkey(value: str, name: str) -> Pubkey:
    value = (value or "").strip()
    if not value:
        raise ProviderMisconfigured(f"{name} is required")
    try:
        return Pubkey.from_string(value)
    except ValueError as exc:
        raise ProviderMisconfigured(f"{name} is not a valid address: {value}") from exc


@dataclass(frozen=True)
class ProgramSettings:
    program_id: Pubkey
    token_mint: Pubkey
    user_summary_seed: bytes = USER_SUMMARY_SEED.encode("utf-8")
    system_seed: bytes = SYSTEM_SEED.encode("utf-8")

    @classmethod
    def from_config(cls, cfg: Mapping[str, Any]) -> "ProgramSettings":
        program_cfg = cfg.get("program", {}) or {}
        program_id = env_override("GHOSTCYCLE_PROGRAM_ID", program_cfg.get("id", ""))
        return cls(
            program_id=_parse_pubkey(str(program_id), "GHOSTCYCLE_PROGRAM_ID"),
            token_mint=_parse_pubkey(str(program_cfg.get("token_mint", DEFAULT_TOKEN_MINT)), "program.token_mint"),
            user_summary_seed=str(program_cfg.get("user_summary_seed", USER_SUMMARY_SEED)).encode("utf-8"),
            system_seed=str(program_cfg.get("system_seed", SYSTEM_SEED)).encode("utf-8"),
        )

    def system_address(self) -> Pubkey:
        address, _ = Pubkey.find_program_address([self.system_seed], self.program_id)
        return address

    def user_summary_address(self, owner: Pubkey) -> Pubkey:
        address, _ = Pubkey.find_program_address([self.user_summary_seed, bytes(owner)], self.program_id)
        return address

    def holding_account_address(self, owner: Pubkey) -> Pubkey:
        return get_associated_token_address(owner, self.token_mint)

    def stake_vault_address(self) -> Pubkey:
        return get_associated_token_address(self.system_address(), self.token_mint)


__all__ = ["DEFAULT_TOKEN_MINT", "ProgramSettings", "SYSTEM_SEED", "USER_SUMMARY_SEED"]
