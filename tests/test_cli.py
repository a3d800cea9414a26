import json

import pytest
from eth_account import Account

from auth.authorization import parse_authorization
from auth.typed_data import (
    TokenDomain,
    recover_signer,
    swap_authorization_message,
    typed_data_digest,
)
from chain.errors import RPCError
from core.base_types import MAX_UINT256, Address
from main import main

E18 = 10**18
OPERATOR_KEY = "0x" + "22" * 32
TOKEN = "0x000000000000000000000000000000000000c0de"
SPENDER = "0x000000000000000000000000000000000000f00d"
DOMAIN_ARGS = ["--token", TOKEN, "--spender", SPENDER, "--name", "Tesla Equity"]
DOMAIN_ARGS += ["--symbol", "SEC", "--nonce", "3", "--chain-id", "1"]


@pytest.fixture(autouse=True)
def _offline_env(monkeypatch):
    for name in ("RPC_URLS", "FACTORY_ADDRESS", "CHAIN_ID", "SWAP_FEE_NUMERATOR"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")


def _domain():
    return TokenDomain(
        name="Tesla Equity",
        chain_id=1,
        verifying_contract=Address.from_string(TOKEN),
        symbol="SEC",
    )


def test_quote(capsys):
    main(["quote", "1", "100", "200"])
    assert capsys.readouterr().out.strip() == "2"


def test_amount_out(capsys):
    main(["amount-out", str(2 * E18), str(50 * E18), str(100 * E18)])
    assert capsys.readouterr().out.strip() == "3835057891295149440"

    main(
        [
            "amount-out",
            str(2 * E18),
            str(50 * E18),
            str(100 * E18),
            "--restricted",
        ]
    )
    assert capsys.readouterr().out.strip() == "3809157368218545594"


def test_amount_in_accepts_hex(capsys):
    main(["amount-in", "0x1", "0x64", "0x64"])
    assert capsys.readouterr().out.strip() == "2"


def test_fee_override_from_environment(monkeypatch, capsys):
    monkeypatch.setenv("SWAP_FEE_NUMERATOR", "500")
    main(["amount-out", "10", "100", "100"])
    assert capsys.readouterr().out.strip() == "4"


def test_router_error_exits_with_message(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["quote", "0", "100", "100"])
    assert exc.value.code == 2
    assert capsys.readouterr().err.strip() != ""


def test_live_amounts_need_rpc(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["amounts-out", "1", TOKEN, SPENDER])
    assert exc.value.code == 2
    assert "RPC_URLS" in capsys.readouterr().err


def test_rpc_failure_exits_with_message(monkeypatch, capsys):
    def fail(self, method, params):
        raise RPCError("HTTP 503", code=503)

    monkeypatch.setenv("RPC_URLS", "https://rpc.example")
    monkeypatch.setenv("FACTORY_ADDRESS", "0x0000000000000000000000000000000000000fac")
    monkeypatch.setattr("chain.client.ChainClient._rpc_call", fail)

    with pytest.raises(SystemExit) as exc:
        main(["amounts-out", "1", TOKEN, SPENDER])
    assert exc.value.code == 2
    assert "HTTP 503" in capsys.readouterr().err


def test_authorization_digest(capsys):
    operator = Account.from_key(OPERATOR_KEY).address
    main(["authorization-digest", *DOMAIN_ARGS, "--operator", operator])

    message = swap_authorization_message(
        _domain(),
        Address.from_string(operator),
        Address.from_string(SPENDER),
        3,
        MAX_UINT256,
    )
    assert capsys.readouterr().out.strip() == f"0x{typed_data_digest(message).hex()}"


def test_sign_authorization(monkeypatch, capsys):
    monkeypatch.setenv("PRIVATE_KEY", OPERATOR_KEY)
    main(["sign-authorization", *DOMAIN_ARGS, "--deadline", "1800000000"])

    payload = json.loads(capsys.readouterr().out)
    authorization = parse_authorization(payload)
    message = swap_authorization_message(
        _domain(),
        authorization.operator,
        Address.from_string(SPENDER),
        int(payload["nonce"]),
        authorization.deadline,
    )

    assert payload["nonce"] == "3"
    assert authorization.deadline == 1_800_000_000
    signer = recover_signer(message, authorization.v, authorization.r, authorization.s)
    assert signer == Account.from_key(OPERATOR_KEY).address
