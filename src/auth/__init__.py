from .authorization import (
    NO_AUTHORIZATION,
    NoAuthorization,
    SignedAuthorization,
    SwapAuthorization,
    empty_authorizations,
    parse_authorization,
    parse_authorizations,
    sign_swap_authorization,
)
from .permit import PermitSignature, permit_signer, sign_permit
from .typed_data import TokenDomain, typed_data_digest
from .verifier import AuthorizationGrant, AuthorizationVerifier

__all__ = [
    "NO_AUTHORIZATION",
    "NoAuthorization",
    "SignedAuthorization",
    "SwapAuthorization",
    "parse_authorization",
    "parse_authorizations",
    "empty_authorizations",
    "sign_swap_authorization",
    "PermitSignature",
    "sign_permit",
    "permit_signer",
    "TokenDomain",
    "typed_data_digest",
    "AuthorizationGrant",
    "AuthorizationVerifier",
]
