# -*- coding: utf-8 -*-
"""Health store — JSON file storage.

Layout under ``<data_root>/healthstore``::

    grants.json               {"capabilities": [...]}
    heart_rate/<id>.json      one stored sample per file
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import FrozenSet, Iterable, List, Sequence
from uuid import uuid4

from pydantic import ValidationError

from ..config import settings
from .client import HealthStoreClient, StoreError, in_window, require_capability
from .models import Capability, HeartRateSample

logger = logging.getLogger(__name__)


def _store_root(data_root: Path | None = None) -> Path:
    return (data_root or settings.data_root) / "healthstore"


def _ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class FileHealthStore(HealthStoreClient):
    def __init__(self, data_root: Path | None = None, *, auto_grant: bool | None = None) -> None:
        self.root = _store_root(data_root)
        self.auto_grant = settings.auto_grant if auto_grant is None else auto_grant

    @property
    def _grants_path(self) -> Path:
        return self.root / "grants.json"

    @property
    def _samples_dir(self) -> Path:
        return self.root / "heart_rate"

    # ---- grants ----

    def _read_grants(self) -> FrozenSet[Capability]:
        fp = self._grants_path
        if not fp.exists():
            return frozenset()
        try:
            data = json.loads(fp.read_text(encoding="utf-8"))
            return frozenset(Capability(c) for c in data.get("capabilities", []))
        except (OSError, AttributeError, ValueError) as exc:
            raise StoreError(f"Unreadable grants file: {exc}") from exc

    def _write_grants(self, capabilities: Iterable[Capability]) -> None:
        _ensure_dir(self.root)
        payload = {
            "capabilities": sorted(c.value for c in set(capabilities)),
            "updated_at": _utc_now(),
        }
        self._grants_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")

    def grant(self, capabilities: Iterable[Capability]) -> FrozenSet[Capability]:
        updated = self._read_grants() | frozenset(capabilities)
        self._write_grants(updated)
        logger.info("Granted capabilities: %s", sorted(c.value for c in updated))
        return updated

    def revoke(self, capabilities: Iterable[Capability]) -> FrozenSet[Capability]:
        updated = self._read_grants() - frozenset(capabilities)
        self._write_grants(updated)
        return updated

    async def get_granted_capabilities(self) -> FrozenSet[Capability]:
        return self._read_grants()

    async def request_capabilities(self, requested: Iterable[Capability]) -> FrozenSet[Capability]:
        if self.auto_grant:
            return self.grant(requested)
        return self._read_grants()

    # ---- samples ----

    async def insert(self, samples: Sequence[HeartRateSample]) -> List[str]:
        require_capability(self._read_grants(), Capability.WRITE_HEART_RATE)
        _ensure_dir(self._samples_dir)
        ids: List[str] = []
        for sample in samples:
            sample_id = str(uuid4())
            stored = sample.model_copy(update={"id": sample_id})
            record = {
                "inserted_at": _utc_now(),
                "sample": stored.model_dump(mode="json"),
            }
            fp = self._samples_dir / f"{sample_id}.json"
            try:
                fp.write_text(json.dumps(record, ensure_ascii=False, indent=2), encoding="utf-8")
            except OSError as exc:
                raise StoreError(f"Failed to write sample: {exc}") from exc
            ids.append(sample_id)
        logger.info("Inserted %d heart rate sample(s)", len(ids))
        return ids

    async def query(self, start: datetime, end: datetime) -> List[HeartRateSample]:
        require_capability(self._read_grants(), Capability.READ_HEART_RATE)
        if end < start:
            raise StoreError("Invalid time range: end is before start")
        if not self._samples_dir.exists():
            return []

        out: List[HeartRateSample] = []
        for fp in sorted(self._samples_dir.glob("*.json")):
            try:
                record = json.loads(fp.read_text(encoding="utf-8"))
                sample = HeartRateSample.model_validate(record.get("sample") or {})
            except (OSError, ValueError, AttributeError, ValidationError) as exc:
                logger.warning("Skipping unreadable sample file %s: %s", fp.name, exc)
                continue
            if in_window(sample, start, end):
                out.append(sample)
        return out
