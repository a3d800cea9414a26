"""Checked token and native transfers."""

from __future__ import annotations

from typing import Callable

from core.base_types import Address
from core.errors import RouterError, TransferFailed


def _checked(action: Callable[[], object], message: str, error=TransferFailed) -> None:
    try:
        result = action()
    except RouterError:
        raise
    except Exception as exc:
        raise error(f"{message}: {exc}") from exc
    if result is False:
        raise error(message)


def safe_transfer(token, caller: Address, to: Address, value: int) -> None:
    _checked(
        lambda: token.transfer(caller, to, value),
        f"transfer of {value} {token.address} to {to} failed",
    )


def safe_transfer_from(
    token, caller: Address, owner: Address, to: Address, value: int
) -> None:
    _checked(
        lambda: token.transfer_from(caller, owner, to, value),
        f"transfer_from of {value} {token.address} from {owner} failed",
    )


def safe_transfer_native(
    host, caller: Address, to: Address, amount: int, error=TransferFailed
) -> None:
    _checked(
        lambda: host.transfer_native(caller, to, amount),
        f"native transfer of {amount} to {to} failed",
        error,
    )
