# -*- coding: utf-8 -*-
"""Health store client interface.

Every backend (in-memory, JSON files, remote HTTP) implements
``HealthStoreClient``. Failures of ``insert``/``query`` are raised as
``StoreError`` so callers have a single type to catch.
"""

from __future__ import annotations

import abc
from datetime import datetime
from typing import FrozenSet, Iterable, List, Sequence

from .models import Capability, HeartRateSample


class StoreError(Exception):
    """Any failure reported by the health store."""


class PermissionDeniedError(StoreError):
    """The caller does not hold the capability the operation needs."""

    def __init__(self, capability: Capability) -> None:
        super().__init__(f"Missing permission: {capability.value}")
        self.capability = capability


class HealthStoreClient(abc.ABC):
    @abc.abstractmethod
    async def get_granted_capabilities(self) -> FrozenSet[Capability]:
        ...

    @abc.abstractmethod
    async def request_capabilities(self, requested: Iterable[Capability]) -> FrozenSet[Capability]:
        """Run the store's authorization flow and return what is granted afterwards."""

    @abc.abstractmethod
    async def insert(self, samples: Sequence[HeartRateSample]) -> List[str]:
        """Persist samples and return the ids the store assigned."""

    @abc.abstractmethod
    async def query(self, start: datetime, end: datetime) -> List[HeartRateSample]:
        """Return heart-rate samples with ``start <= timestamp <= end``."""


def in_window(sample: HeartRateSample, start: datetime, end: datetime) -> bool:
    return start <= sample.timestamp <= end


def require_capability(granted: FrozenSet[Capability], capability: Capability) -> None:
    if capability not in granted:
        raise PermissionDeniedError(capability)
