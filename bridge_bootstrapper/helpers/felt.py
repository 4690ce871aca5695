"""
Field element and word helpers.

Public API
----------
to_felt(value)
    Parse an int, a 0x-hex string or a decimal string into an int felt.
short_string(text)
    Cairo short string encoding (big-endian bytes of at most 31 chars).
to_uint256(value) / from_uint256(low, high)
    Split / join a 256-bit integer into Cairo (low, high) 128-bit limbs.
encode_words(*values)
    Concatenate 32-byte big-endian words; used for proxy init payloads.
generate_config_hash(version, chain_id, fee_token)
    Pedersen hash over the OS config elements.
random_salt()
    Fresh contract address salt for deploy_contract calls.
"""
from __future__ import annotations

import random

from eth_abi import encode
from eth_utils import to_checksum_address
from starknet_py.hash.utils import compute_hash_on_elements

FIELD_PRIME = 2**251 + 17 * 2**192 + 1
_U128 = 2**128


def to_felt(value: int | str) -> int:
    if isinstance(value, int):
        felt = value
    else:
        s = value.strip()
        felt = int(s, 16) if s.lower().startswith("0x") else int(s)
    if felt < 0 or felt >= FIELD_PRIME:
        raise ValueError(f"{value!r} is not a valid field element")
    return felt


def short_string(text: str) -> int:
    raw = text.encode("ascii")
    if len(raw) > 31:
        raise ValueError(f"short string too long ({len(raw)} > 31): {text!r}")
    return int.from_bytes(raw, "big")


def to_uint256(value: int) -> tuple[int, int]:
    if value < 0 or value >= 2**256:
        raise ValueError(f"{value} does not fit in uint256")
    return value % _U128, value // _U128


def from_uint256(low: int, high: int) -> int:
    return low + high * _U128


def random_salt() -> int:
    return random.randint(1, 2**32)


def l1_address_to_felt(address: str) -> int:
    return int(to_checksum_address(address), 16)


def felt_to_l1_address(value: int) -> str:
    if value >= 2**160:
        raise ValueError(f"{hex(value)} is not an L1 address")
    return to_checksum_address("0x" + value.to_bytes(20, "big").hex())


def encode_words(*values: int | str) -> bytes:
    """
    Concatenate 32-byte big-endian words.

    Strings are treated as L1 addresses and left padded, ints as uint256.
    """
    types = ["address" if isinstance(v, str) else "uint256" for v in values]
    args = [to_checksum_address(v) if isinstance(v, str) else v for v in values]
    return encode(types, args)


def generate_config_hash(config_hash_version: int, chain_id: int, fee_token_address: int) -> int:
    return compute_hash_on_elements([config_hash_version, chain_id, fee_token_address])


def get_bridge_init_configs(config) -> tuple[int, int]:
    """Return (program_hash, config_hash) for a BootstrapConfig."""
    program_hash = to_felt(config.sn_os_program_hash)
    config_hash = generate_config_hash(
        short_string(config.config_hash_version),
        short_string(config.app_chain_id),
        to_felt(config.fee_token_address),
    )
    return program_hash, config_hash
