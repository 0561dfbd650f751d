# -*- coding: utf-8 -*-
"""Health store — Pydantic models."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

MIN_BPM = 1
MAX_BPM = 300


class Capability(str, Enum):
    READ_HEART_RATE = "read-heart-rate"
    WRITE_HEART_RATE = "write-heart-rate"


HEART_RATE_CAPABILITIES = frozenset({Capability.READ_HEART_RATE, Capability.WRITE_HEART_RATE})


class HeartRateSample(BaseModel):
    """A single heart-rate reading recorded as a zero-length interval."""

    model_config = ConfigDict(frozen=True)

    id: Optional[str] = Field(None, description="Assigned by the store on insert")
    beats_per_minute: int = Field(..., ge=MIN_BPM, le=MAX_BPM)
    timestamp: datetime = Field(..., description="ISO8601 with the originating UTC offset")

    @field_validator("timestamp")
    @classmethod
    def _require_offset(cls, value: datetime) -> datetime:
        if value.tzinfo is None or value.utcoffset() is None:
            raise ValueError("timestamp must carry a UTC offset")
        return value

    @property
    def end_timestamp(self) -> datetime:
        return self.timestamp

    @property
    def zone_offset_seconds(self) -> int:
        offset = self.timestamp.utcoffset()
        return int(offset.total_seconds()) if offset is not None else 0


class CapabilitySet(BaseModel):
    capabilities: List[Capability] = Field(default_factory=list)


class InsertRequest(BaseModel):
    samples: List[HeartRateSample] = Field(..., min_length=1)


class InsertResponse(BaseModel):
    ids: List[str]


class QueryResponse(BaseModel):
    start: datetime
    end: datetime
    count: int
    samples: List[HeartRateSample]
