# -*- coding: utf-8 -*-
"""Session domain — state snapshot and Pydantic models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, tzinfo
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from ..healthstore.models import HeartRateSample

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M"
TIMESTAMP_PATTERN_LABEL = "yyyy-MM-dd HH:mm"
EMPTY_HISTORY_MESSAGE = "No heart rate records found"


class ValidationErrorKind(str, Enum):
    INVALID_RATE = "invalid_rate"
    INVALID_TIMESTAMP = "invalid_timestamp"


class SampleValidationError(ValueError):
    def __init__(self, kind: ValidationErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class ValidatedSample:
    beats_per_minute: int
    timestamp: datetime


@dataclass(frozen=True)
class SessionState:
    """Immutable snapshot handed to observers."""
    records: Tuple[HeartRateSample, ...] = field(default_factory=tuple)
    error: Optional[str] = None
    permissions_granted: bool = False

    def evolve(self, **changes) -> "SessionState":
        return replace(self, **changes)


def format_local(ts: datetime, tz: Optional[tzinfo] = None) -> str:
    """Render an instant in the display zone (system zone when ``tz`` is None)."""
    local = ts.astimezone(tz) if tz is not None else ts.astimezone()
    return local.strftime(TIMESTAMP_FORMAT)


class SampleSubmitRequest(BaseModel):
    heart_rate: str = Field("", description="Heart rate (1-300 bpm), as typed")
    timestamp: str = Field("", description=f"Date/time ({TIMESTAMP_PATTERN_LABEL}) in local time")


class RecordView(BaseModel):
    id: Optional[str] = None
    beats_per_minute: int
    timestamp: datetime
    display_time: str

    @classmethod
    def from_sample(cls, sample: HeartRateSample, tz: Optional[tzinfo] = None) -> "RecordView":
        return cls(
            id=sample.id,
            beats_per_minute=sample.beats_per_minute,
            timestamp=sample.timestamp,
            display_time=format_local(sample.timestamp, tz),
        )


class SessionStateResponse(BaseModel):
    records: List[RecordView]
    count: int
    error: Optional[str] = None
    permissions_granted: bool
    message: Optional[str] = Field(None, description="Shown when there are no records")

    @classmethod
    def from_state(cls, state: SessionState, tz: Optional[tzinfo] = None) -> "SessionStateResponse":
        records = [RecordView.from_sample(s, tz) for s in state.records]
        return cls(
            records=records,
            count=len(records),
            error=state.error,
            permissions_granted=state.permissions_granted,
            message=None if records else EMPTY_HISTORY_MESSAGE,
        )


class PermissionStatusResponse(BaseModel):
    granted: bool
    required: List[str]
    error: Optional[str] = None
