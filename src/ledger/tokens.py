"""ERC-20 style token models: plain, deflating, security (restricted) and WETH."""

from __future__ import annotations

import logging

from auth.permit import PermitSignature, permit_signer
from auth.typed_data import TokenDomain
from core.base_types import MAX_UINT256, Address
from core.errors import Expired, InvalidSignature, NonceMismatch

from .errors import InsufficientAllowance, InsufficientBalance
from .host import Contract, InMemoryLedger

logger = logging.getLogger(__name__)


class ERC20Token(Contract):
    restricted = False

    def __init__(
        self, ledger: InMemoryLedger, name: str, symbol: str, decimals: int = 18
    ):
        super().__init__(ledger)
        self._name = name
        self._symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self.balances: dict[Address, int] = {}
        self.allowances: dict[tuple[Address, Address], int] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._symbol} @ {self.address})"

    def name(self) -> str:
        return self._name

    def symbol(self) -> str:
        return self._symbol

    def balance_of(self, owner: Address) -> int:
        return self.balances.get(owner, 0)

    def allowance(self, owner: Address, spender: Address) -> int:
        return self.allowances.get((owner, spender), 0)

    def mint(self, to: Address, value: int) -> None:
        """Test setup: create ``value`` tokens for ``to``."""
        self._mint(to, value)

    def _mint(self, to: Address, value: int) -> None:
        self.total_supply += value
        self.balances[to] = self.balance_of(to) + value

    def _burn(self, owner: Address, value: int) -> None:
        available = self.balance_of(owner)
        if available < value:
            raise InsufficientBalance(owner, value, available)
        self.balances[owner] = available - value
        self.total_supply -= value

    def _transfer(self, sender: Address, to: Address, value: int) -> None:
        if value < 0:
            raise ValueError("value must be non-negative")
        available = self.balance_of(sender)
        if available < value:
            raise InsufficientBalance(sender, value, available)
        self.balances[sender] = available - value
        self.balances[to] = self.balance_of(to) + value

    def transfer(self, caller: Address, to: Address, value: int) -> bool:
        self._transfer(caller, to, value)
        return True

    def approve(self, caller: Address, spender: Address, value: int) -> bool:
        self.allowances[(caller, spender)] = value
        return True

    def transfer_from(
        self, caller: Address, owner: Address, to: Address, value: int
    ) -> bool:
        allowed = self.allowance(owner, caller)
        if allowed != MAX_UINT256:
            if allowed < value:
                raise InsufficientAllowance(
                    f"{caller} may move {allowed} of {owner}'s {self._symbol}, not {value}"
                )
            self.allowances[(owner, caller)] = allowed - value
        self._transfer(owner, to, value)
        return True


class PermitMixin:
    """EIP-2612 permit over the token's own signing domain."""

    def nonces(self, owner: Address) -> int:
        return self.permit_nonces.get(owner, 0)

    def permit(
        self,
        caller: Address,
        owner: Address,
        spender: Address,
        value: int,
        deadline: int,
        v: int,
        r: int,
        s: int,
    ) -> None:
        now = self.ledger.timestamp()
        if now >= deadline:
            raise Expired(f"permit deadline {deadline} passed at {now}")
        nonce = self.nonces(owner)
        domain = TokenDomain.for_token(self, self.ledger.chain_id)
        signer = permit_signer(
            domain, owner, spender, value, nonce, deadline, PermitSignature(v, r, s)
        )
        if signer != owner:
            raise InvalidSignature("permit not signed by owner")
        self.permit_nonces[owner] = nonce + 1
        self.allowances[(owner, spender)] = value


class DeflatingToken(ERC20Token):
    """Burns 1% of every transfer from the sender's side."""

    def _transfer(self, sender: Address, to: Address, value: int) -> None:
        burned = value // 100
        if burned:
            self._burn(sender, burned)
        super()._transfer(sender, to, value - burned)


class SecurityToken(PermitMixin, ERC20Token):
    """
    Restricted token. Router transfers need an operator-signed authorization;
    the token only tracks which operators it trusts and each holder's swap
    nonce.
    """

    restricted = True

    def __init__(
        self, ledger: InMemoryLedger, name: str, symbol: str, decimals: int = 18
    ):
        super().__init__(ledger, name, symbol, decimals)
        self.operators: set[Address] = set()
        self.swap_nonce: dict[Address, int] = {}
        self.permit_nonces: dict[Address, int] = {}

    def add_operator(self, operator: Address) -> None:
        self.operators.add(operator)

    def remove_operator(self, operator: Address) -> None:
        self.operators.discard(operator)

    def is_swap_operator(self, operator: Address) -> bool:
        return operator in self.operators

    def swap_nonces(self, holder: Address) -> int:
        return self.swap_nonce.get(holder, 0)

    def consume_swap_nonce(self, caller: Address, holder: Address, nonce: int) -> None:
        current = self.swap_nonces(holder)
        if nonce != current:
            raise NonceMismatch(expected=current, supplied=nonce)
        self.swap_nonce[holder] = current + 1
        logger.debug(
            "%s: swap nonce of %s advanced to %d by %s",
            self._symbol,
            holder,
            current + 1,
            caller,
        )


class WrappedNative(ERC20Token):
    def __init__(self, ledger: InMemoryLedger):
        super().__init__(ledger, "Wrapped Ether", "WETH", 18)

    def deposit(self, caller: Address, value: int) -> None:
        self.ledger.transfer_native(caller, self.address, value)
        self._mint(caller, value)

    def withdraw(self, caller: Address, amount: int) -> None:
        self._burn(caller, amount)
        self.ledger.transfer_native(self.address, caller, amount)
