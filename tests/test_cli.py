import json

import pytest

from sapymint.cli import main, BuildParser, ConfigFromArgs
from sapymint.metadata import MetadataAccount, GetMetadataPda
from sapymint.errors import ConfigError


@pytest.fixture()
def base_args(tmp_path):
    return ["--keypair", str(tmp_path / "payer-keypair.json"), "--log-file", str(tmp_path / "log.log")]


def test_run_prints_mint_and_supply(ledger, base_args, capsys):
    assert main(base_args, connection=ledger) == 0

    out = capsys.readouterr().out
    assert "Mint Address: " in out
    assert "Supply: 100000000000" in out
    mint = next(iter(ledger.mints))
    assert f"Mint Address: {mint}" in out


def test_ui_amount_and_metadata_flags(ledger, base_args, capsys):
    args = base_args + ["--decimals", "6", "--ui-amount", "2.5", "--name", "Flag Token", "--symbol", "FLG"]
    assert main(args, connection=ledger) == 0

    mint = next(iter(ledger.mints))
    assert ledger.mints[mint]["decimals"] == 6
    assert ledger.mints[mint]["supply"] == 2_500_000
    account = MetadataAccount.decode(ledger.metadata[GetMetadataPda(mint)])
    assert (account.name, account.symbol) == ("Flag Token", "FLG")


def test_update_metadata_flow(ledger, base_args, capsys):
    assert main(base_args, connection=ledger) == 0
    mint = next(iter(ledger.mints))

    args = base_args + ["--mint", str(mint), "--update-metadata", "--uri", "https://example.com/v2.json", "--amount", "1"]
    assert main(args, connection=ledger) == 0

    account = MetadataAccount.decode(ledger.metadata[GetMetadataPda(mint)])
    assert account.uri == "https://example.com/v2.json"
    assert account.name == "Your Token Name"
    assert ledger.mints[mint]["supply"] == 100_000_000_001


def test_failure_exits_with_one(ledger, base_args, capsys):
    ledger.faucet = False
    assert main(base_args, connection=ledger) == 1
    assert "Mint Address" not in capsys.readouterr().out


def test_update_without_mint_exits_with_one(ledger, base_args):
    assert main(base_args + ["--update-metadata", "--uri", "https://example.com/v2.json"], connection=ledger) == 1
    assert ledger.sent == []


def test_print_config(ledger, base_args, capsys):
    assert main(base_args + ["--print-config", "--rpc", "http://localhost:8899"], connection=ledger) == 0
    printed = json.loads(capsys.readouterr().out)
    assert printed["rpcEndpoint"] == "http://localhost:8899"
    assert printed["metadata"]["symbol"] == "YTN"
    assert ledger.sent == []


def test_amount_flags_are_exclusive():
    with pytest.raises(SystemExit):
        BuildParser().parse_args(["--amount", "1", "--ui-amount", "1"])


def test_config_file_and_flags(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"decimals": 2, "metadata": {"name": "From File"}}))
    args = BuildParser().parse_args(["--config", str(path), "--symbol", "FF", "--no-airdrop", "--with-creator"])
    config = ConfigFromArgs(args)

    assert config.decimals == 2
    assert config.metadata.name == "From File"
    assert config.metadata.symbol == "FF"
    assert config.requestAirdrop is False
    assert config.withCreator is True


def test_bad_config_file_is_reported(tmp_path):
    args = BuildParser().parse_args(["--config", str(tmp_path / "missing.json")])
    with pytest.raises(ConfigError):
        ConfigFromArgs(args)


def _write_config(tmp_path, obj):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(obj))
    return str(path)


def _created_mint(ledger, base_args):
    assert main(base_args + ["--name", "Real Name", "--symbol", "REAL"], connection=ledger) == 0
    return next(iter(ledger.mints))


def test_update_with_config_file_keeps_untouched_fields(ledger, base_args, tmp_path):
    mint = _created_mint(ledger, base_args)

    config = _write_config(tmp_path, {"mintAddress": str(mint)})
    args = base_args + ["--config", config, "--update-metadata", "--uri", "https://example.com/v2.json"]
    assert main(args, connection=ledger) == 0

    account = MetadataAccount.decode(ledger.metadata[GetMetadataPda(mint)])
    assert (account.name, account.symbol) == ("Real Name", "REAL")
    assert account.uri == "https://example.com/v2.json"


def test_update_with_partial_metadata_in_config_file(ledger, base_args, tmp_path):
    mint = _created_mint(ledger, base_args)

    config = _write_config(tmp_path, {"mintAddress": str(mint), "metadata": {"symbol": "NEW"}})
    assert main(base_args + ["--config", config, "--update-metadata"], connection=ledger) == 0

    account = MetadataAccount.decode(ledger.metadata[GetMetadataPda(mint)])
    assert (account.name, account.symbol) == ("Real Name", "NEW")
    assert account.uri == "https://example.com/metadata.json"


def test_update_flags_win_over_config_file_metadata(ledger, base_args, tmp_path):
    mint = _created_mint(ledger, base_args)

    config = _write_config(tmp_path, {"initializeMetadata": False, "mintAddress": str(mint),
                                      "metadata": {"name": "File Name", "uri": "https://example.com/file.json"}})
    assert main(base_args + ["--config", config, "--name", "Flag Name"], connection=ledger) == 0

    account = MetadataAccount.decode(ledger.metadata[GetMetadataPda(mint)])
    assert account.name == "Flag Name"
    assert account.symbol == "REAL"
    assert account.uri == "https://example.com/file.json"


def test_update_config_from_args_has_only_explicit_fields(tmp_path, monkeypatch):
    monkeypatch.setenv("SAPYMINT_RPC_ENDPOINT", "http://env:8899")
    config = _write_config(tmp_path, {"mintAddress": "11111111111111111111111111111111",
                                      "rpcEndpoint": "http://file:8899", "metadata": {"uri": "https://example.com/file.json"}})
    args = BuildParser().parse_args(["--config", config, "--update-metadata", "--seller-fee-bps", "50"])
    result = ConfigFromArgs(args).Validate()

    assert result.initializeMetadata is False
    assert result.rpcEndpoint == "http://env:8899"
    assert result.metadata.name is None
    assert result.metadata.symbol is None
    assert result.metadata.isMutable is None
    assert result.metadata.uri == "https://example.com/file.json"
    assert result.metadata.sellerFeeBasisPoints == 50


def test_non_finite_ui_amount_exits_with_one(ledger, base_args):
    assert main(base_args + ["--ui-amount", "inf"], connection=ledger) == 1
    assert ledger.sent == []
