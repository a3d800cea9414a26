"""Ethereum JSON-RPC client with retries and error classification."""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Optional

import requests

from core.base_types import Address, TokenAmount, TransactionRequest

from .errors import ChainError, ExecutionReverted, RPCError

logger = logging.getLogger(__name__)


class ChainClient:
    """
    Read-only Ethereum RPC client.

    Features:
    - Automatic retry with exponential backoff
    - Multiple RPC endpoint fallback
    - Request timing/logging
    - Reverted calls surface as ExecutionReverted
    """

    def __init__(
        self,
        rpc_urls: list[str],
        timeout: int = 30,
        max_retries: int = 3,
    ):
        if not rpc_urls:
            raise ValueError("rpc_urls must not be empty")
        self._rpc_urls = list(rpc_urls)
        self._timeout = timeout
        self._max_retries = max_retries
        self._session = requests.Session()

    def get_chain_id(self) -> int:
        return _hex_to_int(self._rpc_call("eth_chainId", []))

    def get_balance(self, address: Address) -> TokenAmount:
        balance_hex = self._rpc_call("eth_getBalance", [address.checksum, "latest"])
        return TokenAmount(
            raw=_hex_to_int(balance_hex),
            decimals=18,
            symbol="ETH",
        )

    def get_block(self, block: str = "latest", full: bool = False) -> dict:
        return self._rpc_call("eth_getBlockByNumber", [block, full])

    def get_timestamp(self, block: str = "latest") -> int:
        return _hex_to_int(self.get_block(block)["timestamp"])

    def call(self, tx: TransactionRequest, block: str = "latest") -> bytes:
        result = self._rpc_call("eth_call", [tx.to_dict(), block])
        return _hex_to_bytes(result)

    def call_many(
        self, txs: list[TransactionRequest], block: str = "latest"
    ) -> list[bytes]:
        """eth_call several requests in one batch, results in request order."""
        results = self._rpc_batch([("eth_call", [tx.to_dict(), block]) for tx in txs])
        return [_hex_to_bytes(result) for result in results]

    def _rpc_call(self, method: str, params: list[Any]) -> Any:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        data = self._post(payload, method)
        if not isinstance(data, dict):
            raise RPCError("Invalid response")
        if "error" in data:
            self._raise_rpc_error(data["error"])
        return data.get("result")

    def _rpc_batch(self, calls: list[tuple[str, list[Any]]]) -> list[Any]:
        payload = [
            {"jsonrpc": "2.0", "id": idx + 1, "method": method, "params": params}
            for idx, (method, params) in enumerate(calls)
        ]
        data = self._post(payload, f"batch({len(calls)})")
        if not isinstance(data, list):
            raise RPCError("Invalid batch response")
        results: dict[int, Any] = {}
        for entry in data:
            if "error" in entry:
                self._raise_rpc_error(entry["error"])
            results[int(entry["id"])] = entry.get("result")
        return [results[idx + 1] for idx in range(len(calls))]

    def _post(self, payload: Any, label: str) -> Any:
        """POST to each endpoint in turn, retrying transport failures."""
        last_error: Optional[Exception] = None
        for url in self._rpc_urls:
            for attempt in range(self._max_retries):
                start = time.perf_counter()
                try:
                    response = self._session.post(
                        url,
                        json=payload,
                        timeout=self._timeout,
                    )
                    elapsed = time.perf_counter() - start
                    logger.info("rpc %s %s in %.3fs", label, url, elapsed)
                    if response.status_code >= 400:
                        raise RPCError(f"HTTP {response.status_code} from {url}")
                    return response.json()
                except (requests.Timeout, requests.ConnectionError) as exc:
                    last_error = exc
                    self._sleep_backoff(attempt)
                except json.JSONDecodeError as exc:
                    last_error = exc
                    self._sleep_backoff(attempt)
        raise ChainError("RPC request failed") from last_error

    def _sleep_backoff(self, attempt: int) -> None:
        delay = 0.5 * (2**attempt)
        time.sleep(delay)

    def _raise_rpc_error(self, error: dict) -> None:
        message = str(error.get("message", "RPC error"))
        code = error.get("code")
        data = error.get("data")
        if "execution reverted" in message.lower():
            raise ExecutionReverted(message, code=code, data=data)
        raise RPCError(message, code=code, data=data)


def _hex_to_int(value: str) -> int:
    if not isinstance(value, str):
        raise RPCError("Expected hex string result")
    return int(value, 16)


def _hex_to_bytes(value: str) -> bytes:
    if not isinstance(value, str):
        raise RPCError("Expected hex string result")
    normalized = value[2:] if value.startswith("0x") else value
    if normalized == "":
        return b""
    return bytes.fromhex(normalized)
