# -*- coding: utf-8 -*-
"""Health store — API endpoints.

Serves the store selected by ``settings.store_backend`` so that remote
clients (``HttpHealthStoreClient``) have something to talk to.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException

from . import create_store_client
from .client import HealthStoreClient, PermissionDeniedError, StoreError
from .models import CapabilitySet, InsertRequest, InsertResponse, QueryResponse

router = APIRouter(prefix="/api/healthstore", tags=["Health Store"])

_store: HealthStoreClient | None = None


def get_store() -> HealthStoreClient:
    global _store
    if _store is None:
        _store = create_store_client(local_only=True)
    return _store


def _http_error(exc: StoreError) -> HTTPException:
    if isinstance(exc, PermissionDeniedError):
        return HTTPException(status_code=403, detail=exc.capability.value)
    return HTTPException(status_code=500, detail=str(exc))


@router.get("/permissions", response_model=CapabilitySet, summary="List granted capabilities")
async def granted_capabilities(store: HealthStoreClient = Depends(get_store)):
    try:
        granted = await store.get_granted_capabilities()
    except StoreError as exc:
        raise _http_error(exc) from exc
    return CapabilitySet(capabilities=sorted(granted, key=lambda c: c.value))


@router.post("/permissions/request", response_model=CapabilitySet, summary="Request capabilities")
async def request_capabilities(request: CapabilitySet, store: HealthStoreClient = Depends(get_store)):
    try:
        granted = await store.request_capabilities(request.capabilities)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return CapabilitySet(capabilities=sorted(granted, key=lambda c: c.value))


@router.post("/records", response_model=InsertResponse, summary="Insert heart rate samples")
async def insert_records(request: InsertRequest, store: HealthStoreClient = Depends(get_store)):
    try:
        ids = await store.insert(request.samples)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return InsertResponse(ids=ids)


@router.get("/records", response_model=QueryResponse, summary="Query heart rate samples in a time range")
async def query_records(start: datetime, end: datetime, store: HealthStoreClient = Depends(get_store)):
    if start.tzinfo is None or end.tzinfo is None:
        raise HTTPException(status_code=400, detail="start and end must carry a UTC offset")
    if end < start:
        raise HTTPException(status_code=400, detail="end is before start")
    try:
        samples = await store.query(start, end)
    except StoreError as exc:
        raise _http_error(exc) from exc
    return QueryResponse(start=start, end=end, count=len(samples), samples=samples)
