# -*- coding: utf-8 -*-
"""HTTP client for a health store served by ``pulselog.healthstore.api``."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence

import httpx

from ..config import settings
from .client import HealthStoreClient, PermissionDeniedError, StoreError
from .models import Capability, CapabilitySet, HeartRateSample, InsertRequest, InsertResponse, QueryResponse

logger = logging.getLogger(__name__)

_PREFIX = "/api/healthstore"


def _detail(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(data, dict) and data.get("detail"):
        return str(data["detail"])
    return str(data)


class HttpHealthStoreClient(HealthStoreClient):
    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.store_url).rstrip("/")
        self.timeout = settings.store_timeout if timeout is None else timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.request(method, f"{_PREFIX}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f"Health store unreachable: {exc}") from exc

        if resp.status_code == 403:
            detail = _detail(resp)
            try:
                capability = Capability(detail)
            except ValueError:
                raise StoreError(f"Permission denied: {detail}") from None
            raise PermissionDeniedError(capability)
        if resp.status_code >= 400:
            raise StoreError(f"Health store returned {resp.status_code}: {_detail(resp)}")
        try:
            return resp.json()
        except ValueError as exc:
            raise StoreError("Health store returned a non-JSON response") from exc

    async def get_granted_capabilities(self) -> FrozenSet[Capability]:
        data = await self._request("GET", "/permissions")
        return frozenset(CapabilitySet.model_validate(data).capabilities)

    async def request_capabilities(self, requested: Iterable[Capability]) -> FrozenSet[Capability]:
        body = CapabilitySet(capabilities=list(requested)).model_dump(mode="json")
        data = await self._request("POST", "/permissions/request", json=body)
        return frozenset(CapabilitySet.model_validate(data).capabilities)

    async def insert(self, samples: Sequence[HeartRateSample]) -> List[str]:
        body = InsertRequest(samples=list(samples)).model_dump(mode="json")
        data = await self._request("POST", "/records", json=body)
        return InsertResponse.model_validate(data).ids

    async def query(self, start: datetime, end: datetime) -> List[HeartRateSample]:
        params = {"start": start.isoformat(), "end": end.isoformat()}
        data = await self._request("GET", "/records", params=params)
        resp = QueryResponse.model_validate(data)
        logger.debug("Remote store returned %d sample(s)", resp.count)
        return list(resp.samples)
