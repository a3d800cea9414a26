"""Native currency boundary: wrap into and unwrap out of the wrapped-native token."""

from __future__ import annotations

import logging

from core.base_types import Address
from core.errors import EthRefundFailed, InvalidPath

from .transfers import safe_transfer, safe_transfer_native

logger = logging.getLogger(__name__)


class NativeAdapter:
    def __init__(self, host, weth_address: Address, router_address: Address):
        self._host = host
        self.weth_address = weth_address
        self._router = router_address

    @property
    def weth(self):
        return self._host.token_at(self.weth_address)

    def require_input(self, token: Address) -> None:
        if token != self.weth_address:
            raise InvalidPath("path must start with the wrapped native token")

    def require_output(self, token: Address) -> None:
        if token != self.weth_address:
            raise InvalidPath("path must end with the wrapped native token")

    def receive(self, sender: Address, value: int) -> None:
        """Take the call's attached value from the sender."""
        if value:
            safe_transfer_native(self._host, sender, self._router, value)

    def wrap_to(self, to: Address, amount: int) -> None:
        """Wrap ``amount`` of the router's native balance and send the tokens on."""
        weth = self.weth
        weth.deposit(self._router, amount)
        safe_transfer(weth, self._router, to, amount)

    def unwrap_to(self, to: Address, amount: int) -> None:
        """Unwrap the router's wrapped tokens and pay out native value."""
        self.weth.withdraw(self._router, amount)
        safe_transfer_native(self._host, self._router, to, amount)

    def refund(self, to: Address, amount: int) -> None:
        if amount <= 0:
            return
        logger.debug("refunding %d native to %s", amount, to)
        safe_transfer_native(self._host, self._router, to, amount, EthRefundFailed)
