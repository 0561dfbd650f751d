# -*- coding: utf-8 -*-
"""
Health store clients
"""

from __future__ import annotations

from typing import Optional

from ..config import settings
from .client import HealthStoreClient, PermissionDeniedError, StoreError
from .memory import InMemoryHealthStore
from .models import HEART_RATE_CAPABILITIES, Capability, HeartRateSample
from .remote import HttpHealthStoreClient
from .storage import FileHealthStore


def create_store_client(backend: Optional[str] = None, *, local_only: bool = False) -> HealthStoreClient:
    """Build the store named by ``backend`` (default: ``settings.store_backend``).

    ``local_only`` maps ``remote`` to the file store; the HTTP store API uses
    it so it never proxies to itself.
    """
    name = (backend or settings.store_backend).strip().lower()
    if name == "remote" and local_only:
        name = "file"
    if name == "memory":
        return InMemoryHealthStore(auto_grant=settings.auto_grant)
    if name == "file":
        return FileHealthStore()
    if name == "remote":
        return HttpHealthStoreClient()
    raise ValueError(f"Unknown store backend: {name!r} (expected file, memory or remote)")


__all__ = [
    'Capability',
    'FileHealthStore',
    'HEART_RATE_CAPABILITIES',
    'HealthStoreClient',
    'HeartRateSample',
    'HttpHealthStoreClient',
    'InMemoryHealthStore',
    'PermissionDeniedError',
    'StoreError',
    'create_store_client',
]
