"""Operator and holder keys: loading, masking and EIP-712 signing."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from eth_account import Account
from eth_account.datastructures import SignedMessage
from eth_account.messages import SignableMessage
from eth_utils.address import to_checksum_address


def _mask_private_key(private_key: Any) -> str:
    if isinstance(private_key, (bytes, bytearray)):
        raw = private_key.hex()
    else:
        raw = str(private_key)

    if raw.startswith("0x"):
        raw = raw[2:]

    if len(raw) < 10:
        return "<redacted>"

    return f"0x{raw[:6]}...{raw[-4:]}"


class WalletManager:
    """
    Holds an operator or trader key and signs on its behalf.

    Keys can be loaded from:
    - Environment variable
    - Encrypted keyfile

    CRITICAL: Private key must never appear in logs, errors, or string
    representations.
    """

    def __init__(self, private_key: str | bytes) -> None:
        try:
            self._account = Account.from_key(private_key)
        except Exception as exc:
            masked = _mask_private_key(private_key)
            raise ValueError(f"Invalid private key: {masked}") from exc

    @classmethod
    def from_env(cls, env_var: str = "PRIVATE_KEY") -> "WalletManager":
        """Load private key from environment variable."""
        value = os.environ.get(env_var)
        if not value:
            raise ValueError(f"Environment variable {env_var} is not set")
        return cls(value)

    @classmethod
    def from_keyfile(cls, path: str, password: str) -> "WalletManager":
        """Load from encrypted keyfile."""
        payload = Path(path).read_text(encoding="utf-8")
        data = json.loads(payload)
        try:
            private_key = Account.decrypt(data, password)
        except Exception as exc:
            raise ValueError("Failed to decrypt keyfile") from exc
        return cls(private_key)

    @property
    def address(self) -> str:
        """Returns checksummed address."""
        return to_checksum_address(self._account.address)

    def sign_structured(self, signable: SignableMessage) -> SignedMessage:
        """
        Sign a pre-hashed EIP-712 message (version 0x01, header = domain
        separator, body = struct hash).

        Needed for domains that carry fields outside the standard
        EIP712Domain set, such as the security-token ``symbol``.
        """
        if not isinstance(signable, SignableMessage):
            raise TypeError("signable must be a SignableMessage")
        if signable.version != b"\x01":
            raise ValueError("only EIP-712 structured messages are supported")
        if len(signable.header) != 32 or len(signable.body) != 32:
            raise ValueError("domain separator and struct hash must be 32 bytes")
        return self._account.sign_message(signable)

    def __repr__(self) -> str:
        """MUST NOT expose private key."""
        return f"WalletManager(address={self.address})"

    def __str__(self) -> str:
        return self.__repr__()
