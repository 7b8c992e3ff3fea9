from __future__ import annotations

import base64
import logging
import time
from typing import Any, Callable, Dict, Optional

import httpx

from .errors import RpcError

log = logging.getLogger(__name__)

_CONFIRMED_LEVELS = ("confirmed", "finalized")


class RpcClient:
    def __init__(
        self,
        rpc_url: str,
        timeout_s: float = 60.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def _post(self, method: str, params: list) -> Dict[str, Any]:
        payload = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        try:
            resp = self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            raise RpcError(f"{method} failed: {e}") from e
        if "error" in data:
            raise RpcError(f"RPC error from {method}: {data['error']}")
        return data

    def get_balance(self, pubkey: str, commitment: str = "confirmed") -> int:
        """Returns the balance in lamports."""
        data = self._post("getBalance", [pubkey, {"commitment": commitment}])
        return int(data["result"]["value"])

    def get_latest_blockhash(self, commitment: str = "confirmed") -> str:
        data = self._post("getLatestBlockhash", [{"commitment": commitment}])
        result = data.get("result") or {}
        blockhash = (result.get("value") or {}).get("blockhash")
        if not blockhash:
            raise RpcError("getLatestBlockhash returned no blockhash.")
        return blockhash

    def send_transaction(self, wire_tx: bytes, skip_preflight: bool = False) -> str:
        """Submits a signed wire transaction and returns its signature."""
        encoded = base64.b64encode(wire_tx).decode("ascii")
        data = self._post(
            "sendTransaction",
            [
                encoded,
                {
                    "encoding": "base64",
                    "skipPreflight": skip_preflight,
                    "preflightCommitment": "confirmed",
                },
            ],
        )
        return str(data["result"])

    def get_signature_status(self, signature: str) -> Optional[Dict[str, Any]]:
        data = self._post(
            "getSignatureStatuses",
            [[signature], {"searchTransactionHistory": False}],
        )
        values = (data.get("result") or {}).get("value") or [None]
        return values[0]

    def confirm_transaction(
        self,
        signature: str,
        timeout_s: float = 60.0,
        interval_s: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> str:
        """
        Polls getSignatureStatuses until the transaction reaches `confirmed`.
        Returns the confirmation level; raises RpcError on an on-chain error
        or when `timeout_s` passes first.
        """
        deadline = clock() + timeout_s
        while True:
            status = self.get_signature_status(signature)
            if status is not None:
                if status.get("err") is not None:
                    raise RpcError(f"Transaction {signature} failed: {status['err']}")
                level = status.get("confirmationStatus")
                if level in _CONFIRMED_LEVELS:
                    return level
                log.debug("Signature %s at %s, waiting...", signature, level)

            remaining = deadline - clock()
            if remaining <= 0:
                raise RpcError(
                    f"Transaction {signature} not confirmed within {timeout_s:.0f}s."
                )
            sleep(min(interval_s, remaining))
