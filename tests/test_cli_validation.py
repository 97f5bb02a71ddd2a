import pytest
from solders.pubkey import Pubkey

from ghostcycle.main import _build_parser, main


def test_unexpected_argument_rejected() -> None:
    parser = _build_parser()
    with pytest.raises(SystemExit):
        parser.parse_args(["--chain", "devnet"])


def test_missing_program_id_exits_with_config_error(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("program:\n  id: \"\"\n", encoding="utf-8")
    monkeypatch.setenv("GHOSTCYCLE_CONFIG", str(config_path))
    monkeypatch.delenv("GHOSTCYCLE_PROGRAM_ID", raising=False)
    assert main([]) == 2


def test_missing_config_file_exits_with_config_error(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("GHOSTCYCLE_CONFIG", str(tmp_path / "absent.yaml"))
    assert main([]) == 2


def test_invalid_yaml_exits_with_config_error(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text("rpc: [unclosed\n", encoding="utf-8")
    monkeypatch.setenv("GHOSTCYCLE_CONFIG", str(config_path))
    assert main([]) == 2


def test_malformed_tiers_exit_with_config_error(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        "tiers:\n"
        "  - {cumulative_supply: 0, reward_rate_per_second: 1, stake_threshold_to_next: 500}\n"
        "  - {cumulative_supply: 10, reward_rate_per_second: 2, stake_threshold_to_next: 100}\n"
        "  - {cumulative_supply: 20, reward_rate_per_second: 3}\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("GHOSTCYCLE_CONFIG", str(config_path))
    monkeypatch.setenv("GHOSTCYCLE_PROGRAM_ID", str(Pubkey.new_unique()))
    assert main([]) == 2
