"""Device trust gate: the contract the attendance core consumes, plus a guard around it.

How a fingerprint is computed and how approvals are granted are outside the core; it only
asks for a verdict and treats anything other than ``approved`` as a hard rejection.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import datetime, timedelta
from typing import Dict, Optional, Protocol, Tuple

from ..core.constants import DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS, DEFAULT_DEVICE_VERDICT_TTL_HOURS
from ..core.enums import DeviceVerdict
from ..core.exceptions import DeviceNotApprovedError, UpstreamTimeoutError
from .model import CachedVerdict, DeviceMetadata

logger = logging.getLogger(__name__)


class DeviceTrustGate(Protocol):
    def is_approved(self, person_id: int, device_fingerprint: str) -> DeviceVerdict:
        raise NotImplementedError

    def request_approval(self, person_id: int, metadata: DeviceMetadata) -> int:
        """Register an unrecognized device for approval; returns the device record id."""
        raise NotImplementedError


class VerdictCache(Protocol):
    def get(self, person_id: int, device_fingerprint: str) -> Optional[CachedVerdict]:
        raise NotImplementedError

    def put(self, person_id: int, device_fingerprint: str, cached: CachedVerdict) -> None:
        raise NotImplementedError


class InMemoryVerdictCache(VerdictCache):
    def __init__(self):
        self._lock = threading.Lock()
        self._items: Dict[Tuple[int, str], CachedVerdict] = {}

    def get(self, person_id: int, device_fingerprint: str) -> Optional[CachedVerdict]:
        with self._lock:
            return self._items.get((person_id, device_fingerprint))

    def put(self, person_id: int, device_fingerprint: str, cached: CachedVerdict) -> None:
        with self._lock:
            self._items[(person_id, device_fingerprint)] = cached


_MESSAGES = {
    DeviceVerdict.PENDING: "This device is awaiting administrator approval",
    DeviceVerdict.NEW: "This device is not registered; request approval first",
    DeviceVerdict.UNKNOWN: "This device is not recognized for this account",
}


class DeviceApprovalGuard:
    """Asks the gate for a verdict within a deadline and enforces it.

    Only ``approved`` verdicts are cached, for ``ttl``. A timed-out query raises
    UpstreamTimeoutError; retrying is the caller's decision.
    """

    def __init__(
        self,
        gate: DeviceTrustGate,
        cache: Optional[VerdictCache] = None,
        *,
        timeout_seconds: float = DEFAULT_DEVICE_CHECK_TIMEOUT_SECONDS,
        ttl: timedelta = timedelta(hours=DEFAULT_DEVICE_VERDICT_TTL_HOURS),
    ):
        self._gate = gate
        self._cache = cache
        self._timeout = float(timeout_seconds)
        self._ttl = ttl

    def verdict(self, person_id: int, device_fingerprint: str, *, now: datetime) -> DeviceVerdict:
        if self._cache is not None:
            cached = self._cache.get(person_id, device_fingerprint)
            if cached is not None and cached.is_fresh(now, self._ttl):
                return cached.verdict

        future = self._ask_gate(person_id, device_fingerprint)
        try:
            verdict = future.result(timeout=self._timeout)
        except FutureTimeoutError:
            logger.warning(
                "device trust check timed out person_id=%s device=%s after %.1fs",
                person_id, device_fingerprint, self._timeout,
            )
            raise UpstreamTimeoutError("Device verification timed out, please retry") from None

        if verdict == DeviceVerdict.APPROVED and self._cache is not None:
            self._cache.put(person_id, device_fingerprint, CachedVerdict(verdict=verdict, cached_at=now))
        return verdict

    def _ask_gate(self, person_id: int, device_fingerprint: str) -> Future:
        # One daemon thread per query: a hung upstream call is abandoned, never waited on again.
        future: Future = Future()

        def run():
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(self._gate.is_approved(person_id, device_fingerprint))
            except Exception as exc:
                future.set_exception(exc)

        threading.Thread(target=run, name="device-gate", daemon=True).start()
        return future

    def require_approved(self, person_id: int, device_fingerprint: str, *, now: datetime) -> None:
        verdict = self.verdict(person_id, device_fingerprint, now=now)
        if verdict != DeviceVerdict.APPROVED:
            raise DeviceNotApprovedError(_MESSAGES.get(verdict, "Device not approved"), verdict=verdict)

    def request_approval(self, person_id: int, metadata: DeviceMetadata) -> int:
        return self._gate.request_approval(person_id, metadata)
