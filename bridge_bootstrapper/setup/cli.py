#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import sys

from starknet_py.net.client_errors import ClientError
from web3.exceptions import Web3Exception

from ..config.logging_config import get_bootstrap_logger
from ..config.settings import BootstrapConfig
from ..helpers.checkpoint import rotate_checkpoint
from ..helpers.errors import BootstrapError
from ..helpers.felt import get_bridge_init_configs
from .bootstrap import bootstrap, context_for_book, default_observer, load_address_book
from .context import build_context
from .harness import BridgeHarness
from .upgrades import UPGRADE_TARGETS, run_upgrades

# Failures reported as "Error: ..." with exit code 1. OSError covers refused
# connections and unreadable files.
_COMMAND_ERRORS = (BootstrapError, ValueError, OSError, Web3Exception, ClientError)


def _load_config(args: argparse.Namespace) -> BootstrapConfig:
    return BootstrapConfig.from_args(args)


def cmd_bootstrap(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
        logger = get_bootstrap_logger(config.log_level)
        logger.info(f"Bootstrapping ({'dev' if config.dev else 'production'} mode)")

        previous = rotate_checkpoint(config.addresses_file)
        if previous is not None:
            logger.info(f"Previous addresses moved to {previous}")

        ctx = build_context(config)
        book, ctx = bootstrap(ctx, observer=default_observer(config.addresses_file))
        logger.info(f"Addresses written to {config.addresses_file}")

        if args.run_tests:
            harness = BridgeHarness(ctx, book, poll_balances=bool(args.poll_balances))
            harness.run_eth_bridge_test()
            harness.run_erc20_bridge_test()
            logger.info("Bridge tests passed")
        return 0
    except _COMMAND_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _cmd_bridge_test(args: argparse.Namespace, which: str) -> int:
    try:
        config = _load_config(args)
        logger = get_bootstrap_logger(config.log_level)
        book = load_address_book(config.addresses_file)
        if not book:
            print(f"No addresses found in {config.addresses_file}; run bootstrap first", file=sys.stderr)
            return 1

        ctx = context_for_book(build_context(config), book)
        harness = BridgeHarness(ctx, book, poll_balances=bool(args.poll_balances))
        if which == "eth":
            harness.run_eth_bridge_test()
        else:
            harness.run_erc20_bridge_test()
        logger.info(f"{which.upper()} bridge test passed")
        return 0
    except _COMMAND_ERRORS + (KeyError,) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_test_eth_bridge(args: argparse.Namespace) -> int:
    return _cmd_bridge_test(args, "eth")


def cmd_test_erc20_bridge(args: argparse.Namespace) -> int:
    return _cmd_bridge_test(args, "erc20")


def cmd_upgrade(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
        logger = get_bootstrap_logger(config.log_level)
        book = load_address_book(config.addresses_file)
        if not book:
            print(f"No addresses found in {config.addresses_file}; run bootstrap first", file=sys.stderr)
            return 1

        ctx = context_for_book(build_context(config), book)
        run_upgrades(ctx, book, args.targets, observer=default_observer(config.addresses_file))
        logger.info(f"Upgraded {', '.join(args.targets)}; addresses written to {config.addresses_file}")
        return 0
    except _COMMAND_ERRORS + (KeyError,) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_config_hash(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
        program_hash, config_hash = get_bridge_init_configs(config)
        print(json.dumps({"program_hash": hex(program_hash), "config_hash": hex(config_hash)}, indent=2))
        return 0
    except _COMMAND_ERRORS as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_config_args(p: argparse.ArgumentParser) -> None:
    # Every flag defaults to None so unset flags fall through to the environment
    p.add_argument("--env-file", help="Path to .env file to load before resolving env vars")
    p.add_argument("--eth-rpc", dest="eth_rpc", default=None, help="L1 JSON-RPC url")
    p.add_argument("--eth-priv-key", dest="eth_priv_key", default=None, help="L1 deployer private key")
    p.add_argument("--eth-chain-id", dest="eth_chain_id", default=None, help="Expected L1 chain id")
    p.add_argument("--l1-deployer-address", dest="l1_deployer_address", default=None)
    p.add_argument("--rollup-seq-url", dest="rollup_seq_url", default=None, help="L2 sequencer JSON-RPC url")
    p.add_argument("--rollup-priv-key", dest="rollup_priv_key", default=None, help="L2 account private key")
    p.add_argument("--l2-bootstrap-account", dest="l2_bootstrap_account", default=None,
                   help="Predeployed L2 account used until account_init has run")
    p.add_argument("--l1-wait-time", dest="l1_wait_time", default=None, help="Seconds to wait after L1 initialization")
    p.add_argument("--cross-chain-wait-time", dest="cross_chain_wait_time", default=None,
                   help="Seconds to wait for a cross-chain message")
    p.add_argument("--declare-wait-time", dest="declare_wait_time", default=None,
                   help="Seconds to wait between L2 declarations")
    p.add_argument("--sn-os-program-hash", dest="sn_os_program_hash", default=None)
    p.add_argument("--config-hash-version", dest="config_hash_version", default=None)
    p.add_argument("--app-chain-id", dest="app_chain_id", default=None)
    p.add_argument("--fee-token-address", dest="fee_token_address", default=None)
    p.add_argument("--l1-multisig-address", dest="l1_multisig_address", default=None)
    p.add_argument("--l2-multisig-address", dest="l2_multisig_address", default=None)
    p.add_argument("--verifier-address", dest="verifier_address", default=None)
    p.add_argument("--operator-address", dest="operator_address", default=None)
    p.add_argument("--artifacts-dir", dest="artifacts_dir", default=None, help="Directory holding contract artifacts")
    p.add_argument("--addresses-file", dest="addresses_file", default=None, help="Checkpoint file for deployed addresses")
    p.add_argument("--l1-poll-interval", dest="l1_poll_interval", default=None)
    p.add_argument("--l1-max-attempts", dest="l1_max_attempts", default=None)
    p.add_argument("--l2-poll-interval", dest="l2_poll_interval", default=None)
    p.add_argument("--l2-max-attempts", dest="l2_max_attempts", default=None)
    p.add_argument("--not-found-tolerance", dest="not_found_tolerance", default=None,
                   help="Polls answered 'not found' before giving up on a transaction")
    p.add_argument("--log-level", dest="log_level", default=None, help="DEBUG, INFO, WARNING, ...")
    p.add_argument("--dev", action="store_true", default=None, help="Dev mode: unsafe proxies, self-initialization")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Deploy and wire the L1/L2 bridge contracts of a Starknet app chain")
    sub = parser.add_subparsers(dest="cmd")

    # bootstrap
    p_boot = sub.add_parser("bootstrap", help="Deploy core contract, accounts, bridges, UDC and account classes")
    _add_config_args(p_boot)
    p_boot.add_argument("--run-tests", action="store_true", help="Run the ETH and ERC20 bridge tests afterwards")
    p_boot.add_argument("--poll-balances", action="store_true", help="Poll balances instead of fixed cross-chain waits")
    p_boot.set_defaults(func=cmd_bootstrap)

    # test-eth-bridge
    p_eth = sub.add_parser("test-eth-bridge", help="Deposit/withdraw round trip through the ETH bridge")
    _add_config_args(p_eth)
    p_eth.add_argument("--poll-balances", action="store_true", help="Poll balances instead of fixed cross-chain waits")
    p_eth.set_defaults(func=cmd_test_eth_bridge)

    # test-erc20-bridge
    p_erc20 = sub.add_parser("test-erc20-bridge", help="Deposit/withdraw round trip through the token bridge")
    _add_config_args(p_erc20)
    p_erc20.add_argument("--poll-balances", action="store_true", help="Poll balances instead of fixed cross-chain waits")
    p_erc20.set_defaults(func=cmd_test_erc20_bridge)

    # upgrade
    p_up = sub.add_parser("upgrade", help="Upgrade the ETH token and bridges of an existing deployment")
    _add_config_args(p_up)
    p_up.add_argument(
        "--targets",
        nargs="+",
        choices=UPGRADE_TARGETS,
        default=list(UPGRADE_TARGETS),
        help="Upgrades to run, in the given order",
    )
    p_up.set_defaults(func=cmd_upgrade)

    # config-hash
    p_hash = sub.add_parser("config-hash", help="Print the program hash and OS config hash")
    _add_config_args(p_hash)
    p_hash.set_defaults(func=cmd_config_hash)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 2
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
