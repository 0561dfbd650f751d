# -*- coding: utf-8 -*-
"""In-memory health store, used by tests and the ``memory`` backend."""

from __future__ import annotations

from datetime import datetime
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set
from uuid import uuid4

from .client import HealthStoreClient, StoreError, in_window, require_capability
from .models import Capability, HeartRateSample


class InMemoryHealthStore(HealthStoreClient):
    def __init__(
        self,
        *,
        granted: Iterable[Capability] = (),
        auto_grant: bool = False,
    ) -> None:
        self._granted: Set[Capability] = set(granted)
        self._samples: List[HeartRateSample] = []
        self.auto_grant = auto_grant
        # Set to an exception instance to make the matching call fail.
        self.fail_capabilities: Optional[Exception] = None
        self.fail_insert: Optional[Exception] = None
        self.fail_query: Optional[Exception] = None
        self.insert_calls = 0
        self.query_calls = 0

    @property
    def samples(self) -> List[HeartRateSample]:
        return list(self._samples)

    def grant(self, capabilities: Iterable[Capability]) -> None:
        self._granted.update(capabilities)

    def revoke(self, capabilities: Iterable[Capability]) -> None:
        self._granted.difference_update(capabilities)

    async def get_granted_capabilities(self) -> FrozenSet[Capability]:
        if self.fail_capabilities is not None:
            raise self.fail_capabilities
        return frozenset(self._granted)

    async def request_capabilities(self, requested: Iterable[Capability]) -> FrozenSet[Capability]:
        if self.auto_grant:
            self.grant(requested)
        return await self.get_granted_capabilities()

    async def insert(self, samples: Sequence[HeartRateSample]) -> List[str]:
        self.insert_calls += 1
        if self.fail_insert is not None:
            raise self.fail_insert
        require_capability(frozenset(self._granted), Capability.WRITE_HEART_RATE)
        ids: List[str] = []
        for sample in samples:
            stored = sample.model_copy(update={"id": str(uuid4())})
            self._samples.append(stored)
            ids.append(stored.id)
        return ids

    async def query(self, start: datetime, end: datetime) -> List[HeartRateSample]:
        self.query_calls += 1
        if self.fail_query is not None:
            raise self.fail_query
        require_capability(frozenset(self._granted), Capability.READ_HEART_RATE)
        if end < start:
            raise StoreError("Invalid time range: end is before start")
        return [s for s in self._samples if in_window(s, start, end)]
