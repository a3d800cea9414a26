"""CLI entrypoint: AMM math, live quoting and swap-authorization tooling."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from amm.math import FeeSchedule, get_amount_in, get_amount_out, quote
from amm.paths import get_amounts_in, get_amounts_out
from auth.authorization import sign_swap_authorization
from auth.typed_data import TokenDomain, swap_authorization_message, typed_data_digest
from chain import ChainClient, ChainError, ChainFactory, ChainHost, ChainToken
from config import RouterSettings, load_settings
from core.base_types import MAX_UINT256, Address
from core.errors import RouterError
from core.wallet_manager import WalletManager

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Security-token swap router CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    quote_cmd = subparsers.add_parser("quote", help="Equivalent amount at reserve ratio")
    quote_cmd.add_argument("amount", type=_to_int)
    quote_cmd.add_argument("reserve_a", type=_to_int)
    quote_cmd.add_argument("reserve_b", type=_to_int)

    for name, amount, help_text in (
        ("amount-out", "amount_in", "Maximum output for an exact input"),
        ("amount-in", "amount_out", "Minimum input for an exact output"),
    ):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument(amount, type=_to_int)
        cmd.add_argument("reserve_in", type=_to_int)
        cmd.add_argument("reserve_out", type=_to_int)
        cmd.add_argument("--restricted", action="store_true", help="Use restricted fee")

    for name, amount, help_text in (
        ("amounts-out", "amount_in", "Per-hop outputs over a live path (RPC)"),
        ("amounts-in", "amount_out", "Per-hop inputs over a live path (RPC)"),
    ):
        cmd = subparsers.add_parser(name, help=help_text)
        cmd.add_argument(amount, type=_to_int)
        cmd.add_argument("path", nargs="+", help="Token addresses, input first")
        cmd.add_argument(
            "--restricted-flags",
            help="Comma-separated 0/1 per hop (default: read from pairs)",
        )

    sign = subparsers.add_parser(
        "sign-authorization", help="Sign AuthorizeSwap with the PRIVATE_KEY operator"
    )
    _add_authorization_args(sign)

    digest = subparsers.add_parser(
        "authorization-digest", help="Print the AuthorizeSwap typed-data digest"
    )
    _add_authorization_args(digest)
    digest.add_argument("--operator", required=True, help="Operator address")

    return parser


def _add_authorization_args(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--token", required=True, help="Security token address")
    cmd.add_argument("--spender", required=True, help="Holder / spender address")
    cmd.add_argument("--name", help="Token name (fetched over RPC if omitted)")
    cmd.add_argument("--symbol", help="Token symbol (fetched over RPC if omitted)")
    cmd.add_argument("--nonce", type=_to_int, help="Swap nonce (fetched if omitted)")
    cmd.add_argument("--deadline", type=_to_int, default=MAX_UINT256)
    cmd.add_argument("--chain-id", type=_to_int, help="Defaults to CHAIN_ID")


def main(argv: Optional[list[str]] = None) -> None:
    settings = load_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    parser = _build_parser()
    args = parser.parse_args(argv)
    fees = FeeSchedule.from_settings(settings)

    try:
        if args.command == "quote":
            print(quote(args.amount, args.reserve_a, args.reserve_b))
            return

        if args.command == "amount-out":
            print(
                get_amount_out(
                    args.amount_in, args.reserve_in, args.reserve_out, args.restricted, fees
                )
            )
            return

        if args.command == "amount-in":
            print(
                get_amount_in(
                    args.amount_out, args.reserve_in, args.reserve_out, args.restricted, fees
                )
            )
            return

        if args.command in ("amounts-out", "amounts-in"):
            amounts = _live_amounts(args, settings, fees)
            print(json.dumps([str(amount) for amount in amounts]))
            return

        if args.command == "authorization-digest":
            domain, nonce = _authorization_domain(args, settings)
            message = swap_authorization_message(
                domain,
                Address.from_string(args.operator),
                Address.from_string(args.spender),
                nonce,
                args.deadline,
            )
            print(f"0x{typed_data_digest(message).hex()}")
            return

        if args.command == "sign-authorization":
            wallet = WalletManager.from_env()
            domain, nonce = _authorization_domain(args, settings)
            signed = sign_swap_authorization(
                wallet, domain, Address.from_string(args.spender), nonce, args.deadline
            )
            operator, deadline, v, r, s = signed.to_wire()
            print(
                json.dumps(
                    {
                        "operator": operator,
                        "deadline": str(deadline),
                        "v": v,
                        "r": f"0x{r.hex()}",
                        "s": f"0x{s.hex()}",
                        "nonce": str(nonce),
                    },
                    separators=(",", ":"),
                    sort_keys=True,
                )
            )
            return
    except (RouterError, ChainError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        sys.exit(2)


def _live_amounts(args, settings: RouterSettings, fees: FeeSchedule) -> list[int]:
    if not settings.rpc_urls:
        raise ValueError("RPC_URLS env var is required")
    if not settings.factory_address:
        raise ValueError("FACTORY_ADDRESS env var is required")
    client = ChainClient(list(settings.rpc_urls))
    host = ChainHost(client, settings.chain_id)
    factory = ChainFactory(client, Address.from_string(settings.factory_address))
    path = [Address.from_string(token) for token in args.path]
    flags = _parse_flags(args.restricted_flags)
    if args.command == "amounts-out":
        return get_amounts_out(factory, host, args.amount_in, path, flags, fees)
    return get_amounts_in(factory, host, args.amount_out, path, flags, fees)


def _authorization_domain(args, settings: RouterSettings) -> tuple[TokenDomain, int]:
    """Build the token's signing domain, reading whatever was not given from RPC."""
    token = Address.from_string(args.token)
    chain_id = args.chain_id or settings.chain_id
    name, symbol, nonce = args.name, args.symbol, args.nonce
    if name is None or symbol is None or nonce is None:
        if not settings.rpc_urls:
            raise ValueError("RPC_URLS env var is required to read token state")
        live = ChainToken(ChainClient(list(settings.rpc_urls)), token)
        name = name if name is not None else live.name()
        symbol = symbol if symbol is not None else live.symbol()
        if nonce is None:
            nonce = live.swap_nonces(Address.from_string(args.spender))
    domain = TokenDomain(
        name=name,
        chain_id=chain_id,
        verifying_contract=token,
        symbol=symbol,
        version=settings.authorization_version,
    )
    logger.debug("authorization domain %s nonce=%d", domain, nonce)
    return domain, nonce


def _parse_flags(raw: Optional[str]) -> Optional[list[bool]]:
    if raw is None:
        return None
    flags = []
    for item in raw.split(","):
        item = item.strip().lower()
        if item in ("1", "true", "yes"):
            flags.append(True)
        elif item in ("0", "false", "no"):
            flags.append(False)
        else:
            raise ValueError(f"invalid restricted flag: {item!r}")
    return flags


def _to_int(value: str) -> int:
    try:
        return int(value, 16) if value.startswith("0x") else int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got {value!r}") from exc


if __name__ == "__main__":
    main()
