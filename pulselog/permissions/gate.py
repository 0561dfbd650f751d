# -*- coding: utf-8 -*-
"""
Permission gate

Answers whether the process may read and write heart-rate samples, and
starts the store's authorization flow when it may not.
"""

from __future__ import annotations

import asyncio
import logging
import webbrowser
from typing import Callable, FrozenSet, Optional

from ..config import settings
from ..healthstore.client import HealthStoreClient
from ..healthstore.models import HEART_RATE_CAPABILITIES, Capability

logger = logging.getLogger(__name__)


def _open_settings_url() -> None:
    if not webbrowser.open(settings.health_settings_url):
        raise RuntimeError(f"no browser available for {settings.health_settings_url}")


class PermissionGate:
    """Read+write heart-rate authorization against a health store."""

    def __init__(
        self,
        store: HealthStoreClient,
        *,
        settings_opener: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.settings_opener = settings_opener or _open_settings_url
        self.required: FrozenSet[Capability] = HEART_RATE_CAPABILITIES
        self.last_error: Optional[str] = None
        # In-flight authorization round trip
        self._pending: Optional[asyncio.Task] = None

    def _is_sufficient(self, granted: FrozenSet[Capability]) -> bool:
        return self.required.issubset(granted)

    async def check_granted(self) -> bool:
        """Fail closed: a query error counts as "not granted" and lands in ``last_error``."""
        try:
            granted = await self.store.get_granted_capabilities()
        except Exception as exc:
            logger.error("Error checking permissions: %s", exc)
            self.last_error = f"Error checking permissions: {exc}"
            return False
        self.last_error = None
        return self._is_sufficient(granted)

    async def _request_round_trip(self) -> FrozenSet[Capability]:
        await self.store.request_capabilities(self.required)
        # The flow's own answer may be partial; the store's granted set is authoritative.
        return await self.store.get_granted_capabilities()

    async def request_grant(self) -> FrozenSet[Capability]:
        """
        Ask the store for the heart-rate capabilities.

        The round trip runs as a task so ``cancel_pending`` can abandon it
        when the session goes away; the awaiting caller then receives
        ``asyncio.CancelledError`` and must not apply any result.

        Returns:
            FrozenSet[Capability]: the granted set after the flow resumed
        """
        if self._pending is not None and not self._pending.done():
            task = self._pending
        else:
            task = asyncio.ensure_future(self._request_round_trip())
            self._pending = task
        try:
            granted = await asyncio.shield(task)
        finally:
            if task.done() and self._pending is task:
                self._pending = None
        self.last_error = None
        logger.info("Permission request finished, granted=%s", sorted(c.value for c in granted))
        return granted

    def cancel_pending(self) -> bool:
        task = self._pending
        self._pending = None
        if task is None or task.done():
            return False
        task.cancel()
        logger.info("Pending permission request cancelled")
        return True

    def open_system_settings(self) -> Optional[str]:
        """Best effort; returns an error message instead of raising."""
        try:
            self.settings_opener()
        except Exception as exc:
            logger.error("Error opening settings: %s", exc)
            return f"Error opening health store settings: {exc}"
        return None
