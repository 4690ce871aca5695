"""Command line entry points, driven against the in-memory chains."""
import json
import logging

import pytest

from bridge_bootstrapper.config.settings import BootstrapConfig
from bridge_bootstrapper.helpers.felt import get_bridge_init_configs
from bridge_bootstrapper.setup import cli

from conftest import make_context


@pytest.fixture
def quiet_logger(monkeypatch):
    monkeypatch.setattr(cli, "get_bootstrap_logger", lambda level: logging.getLogger("bridge_bootstrapper"))


@pytest.fixture
def fake_connect(monkeypatch, chains):
    l1, l2 = chains
    monkeypatch.setattr(cli, "build_context", lambda config: make_context(config, l1, l2))
    return l1, l2


def base_args(tmp_path, artifacts_dir):
    return [
        "--env-file", str(tmp_path / "missing.env"),
        "--dev",
        "--artifacts-dir", str(artifacts_dir),
        "--addresses-file", str(tmp_path / "addresses.json"),
        "--l1-wait-time", "0",
        "--cross-chain-wait-time", "0",
        "--declare-wait-time", "0",
    ]


def test_no_command_prints_help(capsys):
    assert cli.main([]) == 2
    assert "bootstrap" in capsys.readouterr().out


def test_config_hash_command(capsys, tmp_path):
    code = cli.main(["config-hash", "--env-file", str(tmp_path / "missing.env"), "--app-chain-id", "MADARA"])

    assert code == 0
    out = json.loads(capsys.readouterr().out)
    program_hash, config_hash = get_bridge_init_configs(BootstrapConfig())
    assert out == {"program_hash": hex(program_hash), "config_hash": hex(config_hash)}


def test_bootstrap_command_writes_addresses_and_runs_tests(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    l1, _ = fake_connect

    code = cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir), "--run-tests"])

    assert code == 0
    addresses = json.loads((tmp_path / "addresses.json").read_text())
    assert "l1_core_contract_address" in addresses
    assert "ERC20_l2_token_address_temp_test" in addresses
    assert l1.invoked()[-3:] == ["approve", "deposit", "withdraw"]


def test_bootstrap_command_reports_failing_step(capsys, tmp_path, artifacts_dir, quiet_logger, fake_connect):
    l1, _ = fake_connect
    l1.fail_on["registerOperator"] = ConnectionError("connection reset")

    code = cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)])

    assert code == 1
    err = capsys.readouterr().err
    assert err.startswith("Error: step 'core_contract/initialize_core_contract' failed")
    assert "connection reset" in err


def test_bridge_test_needs_a_previous_bootstrap(capsys, tmp_path, artifacts_dir, quiet_logger, fake_connect):
    code = cli.main(["test-eth-bridge", *base_args(tmp_path, artifacts_dir)])

    assert code == 1
    assert "run bootstrap first" in capsys.readouterr().err


def test_bridge_tests_reuse_recorded_addresses(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    l1, _ = fake_connect
    assert cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)]) == 0

    assert cli.main(["test-eth-bridge", *base_args(tmp_path, artifacts_dir)]) == 0
    assert cli.main(["test-erc20-bridge", *base_args(tmp_path, artifacts_dir), "--poll-balances"]) == 0
    assert l1.invoked()[-5:] == ["deposit", "withdraw", "approve", "deposit", "withdraw"]


def test_invalid_setting_is_reported(capsys, tmp_path, artifacts_dir, quiet_logger, fake_connect):
    code = cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir), "--l1-max-attempts", "many"])

    assert code == 1
    assert "L1_MAX_ATTEMPTS" in capsys.readouterr().err


def test_bootstrap_command_starts_from_a_fresh_checkpoint(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    addresses = tmp_path / "addresses.json"
    addresses.write_text(json.dumps({"udc_address": "0xdead", "left_over": "0x1"}))

    assert cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)]) == 0

    current = json.loads(addresses.read_text())
    previous = json.loads((tmp_path / "addresses.json.prev").read_text())
    assert "left_over" not in current
    assert current["udc_address"] != "0xdead"
    assert previous == {"udc_address": "0xdead", "left_over": "0x1"}


def test_failed_bootstrap_leaves_only_its_own_entries(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    l1, _ = fake_connect
    addresses = tmp_path / "addresses.json"
    addresses.write_text(json.dumps({"udc_address": "0xdead"}))
    l1.fail_on["setMaxDeposit"] = ConnectionError("l1 node unreachable")

    assert cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)]) == 1

    current = json.loads(addresses.read_text())
    assert "l1_core_contract_address" in current
    assert "udc_address" not in current


def test_unreachable_node_is_reported(capsys, monkeypatch, tmp_path, artifacts_dir, quiet_logger):
    def refuse(config):
        raise ConnectionError("connection refused")

    monkeypatch.setattr(cli, "build_context", refuse)

    code = cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)])

    assert code == 1
    assert capsys.readouterr().err == "Error: connection refused\n"


def test_upgrade_command_updates_recorded_addresses(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    l1, l2 = fake_connect
    prod_args = [a for a in base_args(tmp_path, artifacts_dir) if a != "--dev"]
    assert cli.main(["bootstrap", *prod_args]) == 0

    assert cli.main(["upgrade", *prod_args]) == 0

    addresses = json.loads((tmp_path / "addresses.json").read_text())
    assert "l1_core_contract_address" in addresses
    assert addresses["l2_eth_address"]["class_hash"] == hex(l2.declared["eth_token_cairo_one"])
    assert addresses["ETH_l2_bridge_address"]["class_hash"] == hex(l2.declared["eth_bridge_cairo_one"])
    assert "ETH_l1_bridge_upgraded_implementation" in addresses
    assert l1.invoked()[-1] == "setMaxTotalBalance"
    assert not (tmp_path / "addresses.json.prev").exists()


def test_upgrade_command_rejects_l1_target_in_dev_mode(capsys, tmp_path, artifacts_dir, quiet_logger, fake_connect):
    assert cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)]) == 0

    code = cli.main(["upgrade", *base_args(tmp_path, artifacts_dir), "--targets", "l1-eth-bridge"])

    assert code == 1
    assert "production" in capsys.readouterr().err


def test_upgrade_command_runs_selected_l2_targets(tmp_path, artifacts_dir, quiet_logger, fake_connect):
    _, l2 = fake_connect
    assert cli.main(["bootstrap", *base_args(tmp_path, artifacts_dir)]) == 0

    assert cli.main(["upgrade", *base_args(tmp_path, artifacts_dir), "--targets", "eth-token"]) == 0

    assert "eth_token_cairo_one" in l2.declared
    assert "eth_bridge_cairo_one" not in l2.declared
