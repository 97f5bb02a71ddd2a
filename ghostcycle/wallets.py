from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List

from base58 import b58decode
from solders.keypair import Keypair
from solders.pubkey import Pubkey

logger = logging.getLogger(__name__)


def load_private_keys(path: str | Path) -> List[str]:
    """Read one secret per line, skipping blank lines and ``#`` comments.

    An unreadable file yields an empty list; the fleet loop treats that as an
    empty wallet set for the round.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.error("Failed to read key file %s: %s", path, exc)
        return []
    keys = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        keys.append(line)
    return keys


def keypair_from_secret(secret: str) -> Keypair:
    raw = secret.strip()
    if raw.startswith("["):
        values = json.loads(raw)
        return Keypair.from_bytes(bytes(values))
    decoded = b58decode(raw)
    if len(decoded) != 64:
        raise ValueError(f"Secret key must decode to 64 bytes, got {len(decoded)}")
    return Keypair.from_bytes(decoded)


def short_address(pubkey: Pubkey | str, size: int = 8) -> str:
    text = str(pubkey)
    if len(text) <= size:
        return text
    return f"{text[:size]}…"


__all__ = ["keypair_from_secret", "load_private_keys", "short_address"]
