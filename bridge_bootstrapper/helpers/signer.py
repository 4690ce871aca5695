"""
Signer identities for both layers.

A SignerIdentity only carries key material and the account it controls. The
chain clients turn it into an SDK signer (eth_account LocalAccount on L1,
starknet.py KeyPair on L2) at submission time.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import to_checksum_address

from .felt import to_felt


class Layer(Enum):
    L1 = "l1"
    L2 = "l2"


class ExecutionEncoding(Enum):
    """Calldata encoding expected by the L2 account contract."""
    LEGACY = "legacy"  # Cairo 0 accounts
    NEW = "new"  # Cairo 1 accounts

    @property
    def cairo_version(self) -> int:
        return 0 if self is ExecutionEncoding.LEGACY else 1


def _normalize_privkey_hex(pk: str) -> str:
    if not isinstance(pk, str):
        raise ValueError("private key must be a hex string")
    pk = pk.strip()
    if pk.startswith("0x"):
        pk = pk[2:]
    if len(pk) != 64:
        raise ValueError("private key hex must be 64 characters (32 bytes)")
    int(pk, 16)  # validate hex
    return "0x" + pk


@dataclass(frozen=True, repr=False)
class SignerIdentity:
    private_key: str
    account_address: str
    layer: Layer
    execution_encoding: ExecutionEncoding = ExecutionEncoding.NEW

    def __repr__(self) -> str:
        return f"SignerIdentity(layer={self.layer.value}, account={self.account_address})"

    @classmethod
    def for_l1(cls, private_key: str) -> "SignerIdentity":
        key = _normalize_privkey_hex(private_key)
        acct: LocalAccount = Account.from_key(key)
        return cls(private_key=key, account_address=to_checksum_address(acct.address), layer=Layer.L1)

    @classmethod
    def for_l2(cls, private_key: str, account_address: str | int, legacy: bool = False) -> "SignerIdentity":
        to_felt(private_key)  # validate
        address = account_address if isinstance(account_address, int) else to_felt(account_address)
        return cls(
            private_key=private_key,
            account_address=hex(address),
            layer=Layer.L2,
            execution_encoding=ExecutionEncoding.LEGACY if legacy else ExecutionEncoding.NEW,
        )

    def eth_account(self) -> LocalAccount:
        if self.layer is not Layer.L1:
            raise ValueError("eth_account() is only available for L1 signers")
        return Account.from_key(self.private_key)

    @property
    def key_int(self) -> int:
        return int(self.private_key, 16)

    @property
    def address_int(self) -> int:
        return int(self.account_address, 16)
