"""Environment-driven settings (.env supported through python-dotenv)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

_ENV_LOADED = False


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    env_path = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(dotenv_path=env_path)
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise SystemExit(f"{name} env var is required")
    return value


def _get_int(name: str, default: int) -> int:
    raw = get_env(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw, 16) if raw.startswith("0x") else int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer") from exc


@dataclass(frozen=True)
class RouterSettings:
    chain_id: int = 1
    rpc_urls: tuple[str, ...] = ()
    factory_address: str | None = None
    weth_address: str | None = None
    swap_fee_numerator: int = 997
    restricted_fee_numerator: int = 990
    fee_denominator: int = 1000
    authorization_version: str = "1"
    log_level: str = "INFO"


def load_settings() -> RouterSettings:
    """Read router settings from the environment (and .env)."""
    rpc_raw = get_env("RPC_URLS", "") or ""
    rpc_urls = tuple(url.strip() for url in rpc_raw.split(",") if url.strip())
    return RouterSettings(
        chain_id=_get_int("CHAIN_ID", 1),
        rpc_urls=rpc_urls,
        factory_address=get_env("FACTORY_ADDRESS") or None,
        weth_address=get_env("WETH_ADDRESS") or None,
        swap_fee_numerator=_get_int("SWAP_FEE_NUMERATOR", 997),
        restricted_fee_numerator=_get_int("RESTRICTED_FEE_NUMERATOR", 990),
        fee_denominator=_get_int("FEE_DENOMINATOR", 1000),
        authorization_version=get_env("AUTHORIZATION_VERSION", "1") or "1",
        log_level=(get_env("LOG_LEVEL", "INFO") or "INFO").upper(),
    )
