# -*- coding: utf-8 -*-
"""
Heart-rate session controller

Sole owner of the session's view state. Every store call is wrapped here and
any failure becomes the text of ``SessionState.error``; nothing is re-raised
to the caller.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, List, Optional

from ..config import settings
from ..healthstore.client import HealthStoreClient, in_window
from ..healthstore.models import HEART_RATE_CAPABILITIES, MAX_BPM, MIN_BPM, HeartRateSample
from ..permissions.gate import PermissionGate
from .models import SampleValidationError, SessionState, ValidatedSample
from .validation import INVALID_RATE_MESSAGE, INVALID_TIMESTAMP_MESSAGE, validate_sample

logger = logging.getLogger(__name__)

StateObserver = Callable[[SessionState], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _reason(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


class HeartRateSessionController:
    """
    Save/load heart-rate samples for one UI session.

    ``save``, ``submit`` and ``load`` are serialized through a single lock so
    a chained refresh can never interleave with another operation.
    """

    def __init__(
        self,
        store: HealthStoreClient,
        *,
        gate: Optional[PermissionGate] = None,
        clock: Optional[Callable[[], datetime]] = None,
        tz: Optional[tzinfo] = None,
        history_hours: Optional[int] = None,
    ):
        self.store = store
        self.gate = gate or PermissionGate(store)
        self.clock = clock or _utc_now
        self.tz = tz if tz is not None else settings.local_timezone
        self.history = timedelta(hours=history_hours or settings.history_hours)

        self._state = SessionState()
        self._observers: List[StateObserver] = []
        self._op_lock = asyncio.Lock()
        self._closed = False

    # ---- state ----

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register ``observer``; it receives the current snapshot immediately."""
        self._observers.append(observer)
        observer(self._state)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _publish(self, **changes) -> SessionState:
        if self._closed:
            logger.debug("Session closed, discarding state update: %s", sorted(changes))
            return self._state
        self._state = self._state.evolve(**changes)
        for observer in list(self._observers):
            try:
                observer(self._state)
            except Exception:
                logger.exception("State observer failed")
        return self._state

    def close(self) -> None:
        """Tear the session down; later results are dropped, not applied."""
        self.gate.cancel_pending()
        self._closed = True
        self._observers.clear()

    # ---- permissions ----

    async def refresh_permissions(self) -> SessionState:
        granted = await self.gate.check_granted()
        if self.gate.last_error:
            return self._publish(permissions_granted=False, error=self.gate.last_error)
        return self._publish(permissions_granted=granted, error=None)

    async def request_permissions(self) -> SessionState:
        try:
            granted = await self.gate.request_grant()
        except asyncio.CancelledError:
            logger.info("Permission request cancelled, result discarded")
            raise
        except Exception as exc:
            logger.error("Error requesting permissions: %s", exc)
            return self._publish(permissions_granted=False, error=f"Error requesting permissions: {_reason(exc)}")
        return self._publish(permissions_granted=HEART_RATE_CAPABILITIES.issubset(granted), error=None)

    def open_settings(self) -> SessionState:
        message = self.gate.open_system_settings()
        if message:
            return self._publish(error=message)
        return self._state

    # ---- samples ----

    def validate(self, raw_rate: str, raw_timestamp: str) -> ValidatedSample:
        return validate_sample(raw_rate, raw_timestamp, self.tz)

    async def submit(self, raw_rate: str, raw_timestamp: str) -> SessionState:
        """Form flow: validate the raw strings, then save."""
        try:
            sample = self.validate(raw_rate, raw_timestamp)
        except SampleValidationError as exc:
            logger.info("Rejected sample input (%s)", exc.kind.value)
            return self._publish(error=exc.message)
        return await self.save(sample.beats_per_minute, sample.timestamp)

    def _local_offset(self, timestamp: datetime) -> datetime:
        local = timestamp.astimezone(self.tz) if self.tz is not None else timestamp.astimezone()
        return local.astimezone(timezone(local.utcoffset()))

    async def save(self, rate: int, timestamp: datetime) -> SessionState:
        if isinstance(rate, bool) or not isinstance(rate, int) or not MIN_BPM <= rate <= MAX_BPM:
            return self._publish(error=INVALID_RATE_MESSAGE)
        if timestamp.tzinfo is None or timestamp.utcoffset() is None:
            return self._publish(error=INVALID_TIMESTAMP_MESSAGE)

        async with self._op_lock:
            sample = HeartRateSample(beats_per_minute=rate, timestamp=self._local_offset(timestamp))
            try:
                await self.store.insert([sample])
            except Exception as exc:
                logger.error("Error saving heart rate: %s", exc)
                return self._publish(error=f"Failed to save heart rate: {_reason(exc)}")

            self._publish(error=None)
            return await self._load_locked()

    async def load(self) -> SessionState:
        async with self._op_lock:
            return await self._load_locked()

    async def _load_locked(self) -> SessionState:
        end = self.clock()
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        start = end - self.history
        try:
            samples = await self.store.query(start, end)
        except Exception as exc:
            logger.error("Error loading heart rates: %s", exc)
            return self._publish(error=f"Failed to load heart rates: {_reason(exc)}")

        kept = [s for s in samples if in_window(s, start, end)]
        if len(kept) != len(samples):
            logger.warning("Store returned %d sample(s) outside the window", len(samples) - len(kept))
        # sorted() is stable with reverse=True, so equal timestamps keep store order.
        records = tuple(sorted(kept, key=lambda s: s.timestamp, reverse=True))
        logger.info("Loaded %d heart rate records", len(records))
        return self._publish(records=records, error=None)

    def clear_error(self) -> SessionState:
        return self._publish(error=None)
