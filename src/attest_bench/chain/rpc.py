"""Minimal Ethereum JSON-RPC client for gas estimation and read-only calls."""

from __future__ import annotations

import itertools
import logging

import requests
from eth_utils import to_checksum_address

from attest_bench.utils.constants import DEFAULT_RPC_TIMEOUT
from attest_bench.utils.errors import ExternalCallError

logger = logging.getLogger(__name__)


class RpcClient:
    """Synchronous JSON-RPC over HTTP.

    Failures are never retried; any transport or node error becomes an
    ExternalCallError and aborts the caller's group.
    """

    def __init__(
        self,
        url: str,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        if not url:
            raise ValueError("RPC url must not be empty")
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self._ids = itertools.count(1)

    def request(self, method: str, params: list):
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            response = self.session.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.RequestException as exc:
            raise ExternalCallError(f"{method} to {self.url} failed: {exc}")
        except ValueError as exc:
            raise ExternalCallError(f"{method} returned a non-JSON response: {exc}")

        if not isinstance(body, dict):
            raise ExternalCallError(f"{method} returned an unexpected payload: {body!r}")
        if body.get("error"):
            error = body["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ExternalCallError(f"{method} rejected by node: {message}")
        if "result" not in body:
            raise ExternalCallError(f"{method} response has no result field")
        return body["result"]

    @staticmethod
    def _tx(to: str, data: bytes, sender: str | None) -> dict:
        tx = {"to": to_checksum_address(to), "data": "0x" + data.hex()}
        if sender:
            tx["from"] = to_checksum_address(sender)
        return tx

    def accounts(self) -> list[str]:
        return list(self.request("eth_accounts", []))

    def estimate_gas(self, to: str, data: bytes, sender: str | None = None) -> int:
        result = self.request("eth_estimateGas", [self._tx(to, data, sender)])
        try:
            return int(result, 16)
        except (TypeError, ValueError):
            raise ExternalCallError(f"eth_estimateGas returned a non-hex value: {result!r}")

    def call(self, to: str, data: bytes, sender: str | None = None) -> bytes:
        result = self.request("eth_call", [self._tx(to, data, sender), "latest"])
        try:
            return bytes.fromhex(result[2:] if result.startswith("0x") else result)
        except (AttributeError, ValueError):
            raise ExternalCallError(f"eth_call returned a non-hex value: {result!r}")
