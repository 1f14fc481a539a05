from __future__ import annotations

import os
import urllib.parse
from typing import Any, Dict, Optional, Union

import requests

from codec.hexutil import to_hex

BytesOrHex = Union[bytes, str]


def _as_hex(value: BytesOrHex) -> str:
    if isinstance(value, (bytes, bytearray)):
        return to_hex(bytes(value))
    return str(value).strip()


class RelayClient:
    """
    HTTP client for the transaction relay, used by both signers.

    Protocol (HTTP JSON):
    POST {RELAY_URL}/transaction  body: {"transaction_id": "...", "bcs_hex": "0x..."}
    POST {RELAY_URL}/signature    body: {"transaction_id": "...", "signature_hex": "0x..."}
    GET  {RELAY_URL}/transaction/<transaction_id>
    GET  {RELAY_URL}/health

    Relay-level failures come back as `{"success": false, "message": ...}`
    dicts; connection problems raise `requests` exceptions.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[float] = None) -> None:
        url = (base_url or os.getenv("RELAY_URL") or "http://localhost:3001").strip()
        self._base_url = url.rstrip("/")
        self._timeout = timeout if timeout is not None else float(os.getenv("HTTP_TIMEOUT_SEC", "10"))

    @property
    def base_url(self) -> str:
        return self._base_url

    def health(self) -> bool:
        try:
            r = requests.get(f"{self._base_url}/health", timeout=self._timeout)
        except requests.RequestException:
            return False
        return r.ok

    def store_transaction(self, transaction_id: str, payload: BytesOrHex) -> Dict[str, Any]:
        body = {"transaction_id": transaction_id, "bcs_hex": _as_hex(payload)}
        r = requests.post(f"{self._base_url}/transaction", json=body, timeout=self._timeout)
        return self._parse(r)

    def store_signature(self, transaction_id: str, signature: BytesOrHex) -> Dict[str, Any]:
        body = {"transaction_id": transaction_id, "signature_hex": _as_hex(signature)}
        r = requests.post(f"{self._base_url}/signature", json=body, timeout=self._timeout)
        return self._parse(r)

    def get_transaction(self, transaction_id: str) -> Dict[str, Any]:
        r = requests.get(
            f"{self._base_url}/transaction/{urllib.parse.quote(transaction_id, safe='')}",
            timeout=self._timeout,
        )
        return self._parse(r)

    @staticmethod
    def _parse(r: requests.Response) -> Dict[str, Any]:
        try:
            data = r.json()
        except ValueError:
            r.raise_for_status()
            raise ValueError(f"Relay returned a non-JSON response (HTTP {r.status_code})")
        if not isinstance(data, dict):
            raise ValueError("Relay returned an unexpected response shape")
        # Errors outside the relay's own envelope (proxies, routing) carry no `success` key.
        if "success" not in data:
            r.raise_for_status()
        return data
