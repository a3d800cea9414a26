"""Restricted-token transfer authorization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.base_types import Address
from core.errors import AuthorizationExpired, InvalidSignature, NonceMismatch

from .authorization import NoAuthorization, SwapAuthorization
from .typed_data import (
    DEFAULT_VERSION,
    TokenDomain,
    recover_signer,
    swap_authorization_message,
)

logger = logging.getLogger(__name__)

# earlier nonces tried when a nonce-less authorization fails to recover
REPLAY_LOOKBACK = 16


@dataclass(frozen=True)
class AuthorizationGrant:
    """An accepted authorization; the token must advance ``nonce`` by one."""

    token: Address
    holder: Address
    operator: Address
    nonce: int


class AuthorizationVerifier:
    """
    Decides whether ``spender`` may move a restricted token on behalf of
    ``holder`` right now.

    Checks, in order: an authorization is present, its deadline has not
    passed, the signed nonce is the holder's current swap nonce, the
    signature recovers to the stated operator, and the operator is one the
    token recognises. Tokens that are not restricted short-circuit to
    authorized without looking at the supplied value.

    The verifier never stores nonces. It reads them from the token and
    reports the accepted one in the returned grant.
    """

    def __init__(self, chain_id: int, version: str = DEFAULT_VERSION):
        if chain_id <= 0:
            raise ValueError("chain_id must be positive")
        self.chain_id = chain_id
        self.version = version

    def domain_for(self, token) -> TokenDomain:
        return TokenDomain.for_token(token, self.chain_id, self.version)

    def verify(
        self,
        token,
        holder: Address,
        authorization: SwapAuthorization,
        now: int,
        spender: Optional[Address] = None,
    ) -> Optional[AuthorizationGrant]:
        if not token.restricted:
            return None

        spender = spender or holder
        if isinstance(authorization, NoAuthorization):
            logger.warning("missing authorization for restricted token %s", token.address)
            raise InvalidSignature(f"token {token.address} requires an authorization")

        if now >= authorization.deadline:
            logger.warning("expired authorization for %s", token.address)
            raise AuthorizationExpired(
                f"authorization deadline {authorization.deadline} passed at {now}"
            )

        current = token.swap_nonces(holder)
        nonce = current if authorization.nonce is None else authorization.nonce
        if nonce != current:
            logger.warning(
                "stale authorization nonce for %s holder=%s", token.address, holder
            )
            raise NonceMismatch(expected=current, supplied=nonce)

        signer = self._recover(token, authorization, spender, nonce)
        if signer != authorization.operator:
            if authorization.nonce is None:
                self._reject_replay(token, authorization, holder, spender, current)
            logger.warning("authorization signer mismatch for %s", token.address)
            raise InvalidSignature("signature does not match operator")
        if not token.is_swap_operator(authorization.operator):
            logger.warning(
                "operator %s not recognised by %s", authorization.operator, token.address
            )
            raise InvalidSignature(f"{authorization.operator} is not a swap operator")

        logger.debug(
            "authorized %s for holder=%s nonce=%d", token.address, holder, nonce
        )
        return AuthorizationGrant(
            token=token.address,
            holder=holder,
            operator=authorization.operator,
            nonce=nonce,
        )

    def _recover(
        self, token, authorization: SwapAuthorization, spender: Address, nonce: int
    ) -> Address:
        message = swap_authorization_message(
            self.domain_for(token),
            authorization.operator,
            spender,
            nonce,
            authorization.deadline,
        )
        return recover_signer(message, authorization.v, authorization.r, authorization.s)

    def _reject_replay(
        self,
        token,
        authorization: SwapAuthorization,
        holder: Address,
        spender: Address,
        current: int,
    ) -> None:
        """Raise NonceMismatch if the signature matches an already consumed nonce."""
        oldest = max(current - REPLAY_LOOKBACK, 0)
        for earlier in range(current - 1, oldest - 1, -1):
            signer = self._recover(token, authorization, spender, earlier)
            if signer == authorization.operator:
                logger.warning(
                    "replayed authorization for %s holder=%s nonce=%d",
                    token.address,
                    holder,
                    earlier,
                )
                raise NonceMismatch(expected=current, supplied=earlier)
