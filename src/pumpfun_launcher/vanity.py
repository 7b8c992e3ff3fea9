from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Protocol
from urllib.parse import quote

import httpx

from .errors import PollError, StatusSourceError
from .project_constants import (
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_POLL_RETRIES,
    DEFAULT_STATUS_TIMEOUT_S,
)

log = logging.getLogger(__name__)

_PENDING = {"pending", "running", "queued", "generating"}
_READY = {"ready", "complete", "completed", "done"}
_FAILED = {"failed", "error", "cancelled", "canceled"}


@dataclass(frozen=True)
class VanityRequest:
    symbol: str
    job_id: str

    @staticmethod
    def for_symbol(symbol: str, job_id: str | None = None) -> "VanityRequest":
        symbol = symbol.upper()
        return VanityRequest(symbol=symbol, job_id=job_id or symbol)


class VanityState(Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class VanityStatus:
    state: VanityState
    address: Optional[str] = None
    secret_key: Optional[str] = field(default=None, repr=False)
    reason: Optional[str] = None

    @staticmethod
    def pending() -> "VanityStatus":
        return VanityStatus(VanityState.PENDING)

    @staticmethod
    def ready(address: str, secret_key: str | None = None) -> "VanityStatus":
        return VanityStatus(VanityState.READY, address=address, secret_key=secret_key)

    @staticmethod
    def failed(reason: str) -> "VanityStatus":
        return VanityStatus(VanityState.FAILED, reason=reason)


class WaitOutcome(Enum):
    READY = "ready"
    SKIPPED = "skipped"
    TIMED_OUT = "timed_out"


@dataclass(frozen=True)
class WaitResult:
    outcome: WaitOutcome
    status: Optional[VanityStatus] = None
    polls: int = 0

    @property
    def address(self) -> Optional[str]:
        return self.status.address if self.status else None


def _first_str(obj: Dict[str, Any], *keys: str) -> Optional[str]:
    for key in keys:
        value = obj.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def parse_status_payload(data: Any) -> VanityStatus:
    """
    Supports:
    1) {"status": "pending"}  (also running / queued / generating)
    2) {"status": "ready", "address": "...", "secret_key": "..."}
    3) {"status": "complete", "result": {"public_key": "...", "private_key": "..."}}
    4) {"status": "failed", "error": "..."}  (also reason / message)
    """
    if not isinstance(data, dict):
        raise StatusSourceError(f"Status payload is not a JSON object: {data!r}")

    state = str(data.get("status", "")).strip().lower()

    if state in _PENDING:
        return VanityStatus.pending()

    if state in _READY:
        result = data.get("result") if isinstance(data.get("result"), dict) else {}
        address = _first_str(data, "address", "public_key") or _first_str(
            result, "address", "public_key"
        )
        if not address:
            raise StatusSourceError("Status is ready but carries no address.")
        secret = _first_str(data, "secret_key", "private_key") or _first_str(
            result, "secret_key", "private_key"
        )
        return VanityStatus.ready(address, secret)

    if state in _FAILED:
        reason = _first_str(data, "error", "reason", "message") or state
        return VanityStatus.failed(reason)

    raise StatusSourceError(f"Unknown vanity status {data.get('status')!r}.")


class StatusSource(Protocol):
    def fetch_status(self, request: VanityRequest) -> VanityStatus:
        """Returns one snapshot; raises StatusSourceError when the poll fails."""
        ...


class VanityStatusClient:
    """HTTP status source: GET {base_url}/status/{job_id}."""

    def __init__(
        self,
        base_url: str,
        timeout_s: float = DEFAULT_STATUS_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.client = httpx.Client(timeout=timeout_s, transport=transport)

    def close(self) -> None:
        self.client.close()

    def fetch_status(self, request: VanityRequest) -> VanityStatus:
        url = f"{self.base_url}/status/{quote(request.job_id, safe='')}"
        try:
            resp = self.client.get(url)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise StatusSourceError(
                f"Status source returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise StatusSourceError(f"Status source unreachable: {e}") from e
        except ValueError as e:
            raise StatusSourceError(f"Status source returned invalid JSON: {e}") from e
        return parse_status_payload(data)


class VanityWaiter:
    """
    Blocks the calling thread until the vanity job for a request is ready.

    Polls at a fixed interval with no backoff. A poll that raises
    StatusSourceError or reports a failed job counts as a failure; more than
    `retries` consecutive failures raise PollError. Any successful poll resets
    the failure count.
    """

    def __init__(
        self,
        source: StatusSource,
        retries: int = DEFAULT_POLL_RETRIES,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if retries < 0:
            raise ValueError("retries must be >= 0")
        self.source = source
        self.retries = retries
        self._sleep = sleep
        self._clock = clock

    def wait_for_vanity(
        self,
        request: VanityRequest,
        wait_enabled: bool = True,
        poll_interval: float = DEFAULT_POLL_INTERVAL_S,
        timeout: float | None = None,
    ) -> WaitResult:
        if poll_interval <= 0:
            raise ValueError("poll_interval must be > 0")
        if timeout is not None and timeout <= 0:
            raise ValueError("timeout must be > 0 when given")

        if not wait_enabled:
            return WaitResult(WaitOutcome.SKIPPED)

        deadline = None if timeout is None else self._clock() + timeout
        polls = 0
        failures = 0

        while True:
            polls += 1
            try:
                status = self.source.fetch_status(request)
            except StatusSourceError as e:
                status = VanityStatus.failed(str(e))

            if status.state is VanityState.READY:
                log.info(
                    "Vanity address for %s is ready: %s (poll %d)",
                    request.symbol,
                    status.address,
                    polls,
                )
                return WaitResult(WaitOutcome.READY, status, polls)

            if status.state is VanityState.FAILED:
                failures += 1
                if failures > self.retries:
                    log.error(
                        "Vanity status for job %s failed %d times in a row: %s",
                        request.job_id,
                        failures,
                        status.reason,
                    )
                    raise PollError(
                        f"Vanity status source failed {failures} consecutive polls "
                        f"for job {request.job_id}: {status.reason}",
                        attempts=polls,
                    )
                log.warning(
                    "Vanity status poll %d failed (%s), retry %d/%d",
                    polls,
                    status.reason,
                    failures,
                    self.retries,
                )
            else:
                failures = 0
                log.info(
                    "Vanity address for %s still pending (poll %d), next check in %.0fs",
                    request.symbol,
                    polls,
                    poll_interval,
                )

            if deadline is None:
                self._sleep(poll_interval)
                continue

            remaining = deadline - self._clock()
            if remaining <= 0:
                log.warning(
                    "Gave up waiting for vanity address for %s after %.0fs (%d polls)",
                    request.symbol,
                    timeout,
                    polls,
                )
                return WaitResult(WaitOutcome.TIMED_OUT, None, polls)
            self._sleep(min(poll_interval, remaining))
