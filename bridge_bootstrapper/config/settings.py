"""
Runtime settings for a bootstrap run.

Values come from (lowest to highest precedence) the built-in defaults, the
environment (optionally populated from a .env file) and command line flags.

Public API
----------
BootstrapConfig.from_env(env_file=None)
    Build a config from the environment.
BootstrapConfig.from_args(args)
    Build a config from an argparse namespace layered over the environment.
"""
from __future__ import annotations

import argparse
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path

from dotenv import load_dotenv

from .network import ChainEndpoint

# Well known anvil account #0
DEFAULT_ETH_PRIV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
DEFAULT_L1_DEPLOYER = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


@dataclass(frozen=True)
class BootstrapConfig:
    eth_rpc: str = "http://127.0.0.1:8545"
    eth_priv_key: str = DEFAULT_ETH_PRIV_KEY
    rollup_seq_url: str = "http://127.0.0.1:9944"
    rollup_priv_key: str = "0xabcd"
    eth_chain_id: int = 31337
    l1_deployer_address: str = DEFAULT_L1_DEPLOYER
    l1_wait_time: float = 15
    sn_os_program_hash: str = "0x41fc2a467ef8649580631912517edcab7674173f1dbfa2e9b64fbcd82bc4d79"
    config_hash_version: str = "StarknetOsConfig1"
    app_chain_id: str = "MADARA"
    fee_token_address: str = "0x049d36570d4e46f48e99674bd3fcc84644ddd6b96f7c741b1562b82f9e004dc7"
    cross_chain_wait_time: float = 80
    l1_multisig_address: str = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
    l2_multisig_address: str = "0x556455b8ac8bc00e0ad061d7df5458fa3c372304877663fa21d492a8d5e9435"
    verifier_address: str = "0x000000000000000000000000000000000000abcd"
    operator_address: str = "0x000000000000000000000000000000000000abcd"
    dev: bool = False
    # Account that signs L2 transactions until account_init has deployed ours
    l2_bootstrap_account: str = "0x1"

    artifacts_dir: Path = field(default_factory=lambda: Path("artifacts"))
    addresses_file: Path = field(default_factory=lambda: Path("addresses.json"))
    declare_wait_time: float = 10
    l1_poll_interval: float = 1.0
    l1_max_attempts: int = 120
    l2_poll_interval: float = 2.0
    l2_max_attempts: int = 60
    # None: "not found" is tolerated for the whole attempt budget
    not_found_tolerance: int | None = None
    log_level: str = "INFO"

    def __post_init__(self):
        for name in ("l1_wait_time", "cross_chain_wait_time", "declare_wait_time"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")
        if self.l1_max_attempts < 1 or self.l2_max_attempts < 1:
            raise ValueError("max attempts must be >= 1")

    @property
    def l1_endpoint(self) -> ChainEndpoint:
        return ChainEndpoint(rpc_url=self.eth_rpc, chain_id=self.eth_chain_id)

    @property
    def l2_endpoint(self) -> ChainEndpoint:
        return ChainEndpoint(rpc_url=self.rollup_seq_url)

    # ------------------------------------------------------------------ #
    # Builders                                                           #
    # ------------------------------------------------------------------ #

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "BootstrapConfig":
        """Read settings from upper-cased environment variables (ETH_RPC, DEV, ...)."""
        if env_file:
            load_dotenv(env_file)
        else:
            load_dotenv()

        overrides = {}
        for f in fields(cls):
            raw = os.getenv(f.name.upper())
            if raw is None or raw == "":
                continue
            overrides[f.name] = _coerce(f.name, raw)
        return cls(**overrides)

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "BootstrapConfig":
        """Layer explicitly passed CLI flags over the environment."""
        base = cls.from_env(getattr(args, "env_file", None))
        overrides = {}
        for f in fields(cls):
            value = getattr(args, f.name, None)
            if value is None:
                continue
            overrides[f.name] = _coerce(f.name, value) if isinstance(value, str) else value
        return replace(base, **overrides)


_INT_FIELDS = {"eth_chain_id", "l1_max_attempts", "l2_max_attempts", "not_found_tolerance"}
_FLOAT_FIELDS = {
    "l1_wait_time",
    "cross_chain_wait_time",
    "declare_wait_time",
    "l1_poll_interval",
    "l2_poll_interval",
}
_PATH_FIELDS = {"artifacts_dir", "addresses_file"}


def _coerce(name: str, raw: str):
    try:
        if name in _INT_FIELDS:
            return int(raw, 0)
        if name in _FLOAT_FIELDS:
            return float(raw)
    except ValueError:
        raise ValueError(f"Invalid value for {name.upper()}: {raw!r}")
    if name in _PATH_FIELDS:
        return Path(raw)
    if name == "dev":
        return raw.strip().lower() in ("1", "true", "yes", "on")
    return raw
