import json

import pytest
from base58 import b58encode
from solders.keypair import Keypair

from ghostcycle.wallets import keypair_from_secret, load_private_keys, short_address


def test_loader_skips_comments_and_blank_lines(tmp_path):
    first = b58encode(bytes(Keypair())).decode("ascii")
    second = b58encode(bytes(Keypair())).decode("ascii")
    key_file = tmp_path / "ghost_keys.txt"
    key_file.write_text(f"# main wallets\n{first}\n\n   {second}  \n", encoding="utf-8")

    keys = load_private_keys(key_file)
    assert keys == [first, second]


def test_loader_returns_empty_list_for_missing_file(tmp_path):
    assert load_private_keys(tmp_path / "missing.txt") == []


def test_keypair_from_base58_and_json_array():
    keypair = Keypair()
    from_b58 = keypair_from_secret(b58encode(bytes(keypair)).decode("ascii"))
    from_json = keypair_from_secret(json.dumps(list(bytes(keypair))))
    assert from_b58.pubkey() == keypair.pubkey()
    assert from_json.pubkey() == keypair.pubkey()


def test_keypair_rejects_short_secret():
    with pytest.raises(ValueError):
        keypair_from_secret(b58encode(b"\x01" * 32).decode("ascii"))


def test_short_address():
    assert short_address("ABCDEFGHIJKLMNOP") == "ABCDEFGH…"
    assert short_address("ABC") == "ABC"
