# -*- coding: utf-8 -*-
"""Form input validation for manually entered samples."""

from __future__ import annotations

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

from ..healthstore.models import MAX_BPM, MIN_BPM
from .models import (
    TIMESTAMP_FORMAT,
    TIMESTAMP_PATTERN_LABEL,
    SampleValidationError,
    ValidatedSample,
    ValidationErrorKind,
)

INVALID_RATE_MESSAGE = f"Please enter a valid heart rate ({MIN_BPM}-{MAX_BPM} bpm)"
INVALID_TIMESTAMP_MESSAGE = f"Invalid date/time format. Use {TIMESTAMP_PATTERN_LABEL}"

# strptime alone accepts single-digit fields ("2024-1-1 9:5"); the pattern does not.
_TIMESTAMP_RE = re.compile(r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}", re.ASCII)
_RATE_RE = re.compile(r"[+-]?\d+", re.ASCII)


def parse_rate(raw: str) -> Optional[int]:
    text = raw or ""
    if not _RATE_RE.fullmatch(text):
        return None
    value = int(text)
    if value < MIN_BPM or value > MAX_BPM:
        return None
    return value


def parse_local_timestamp(raw: str, tz: Optional[tzinfo] = None) -> Optional[datetime]:
    """Parse ``yyyy-MM-dd HH:mm`` as wall-clock time in ``tz`` (system zone if None).

    The result is aware, carrying the UTC offset in force at that instant.
    """
    text = raw or ""
    if not _TIMESTAMP_RE.fullmatch(text):
        return None
    try:
        naive = datetime.strptime(text, TIMESTAMP_FORMAT)
    except ValueError:
        return None
    if tz is None:
        return naive.astimezone()
    aware = naive.replace(tzinfo=tz)
    return aware.astimezone(timezone(aware.utcoffset()))


def validate_sample(raw_rate: str, raw_timestamp: str, tz: Optional[tzinfo] = None) -> ValidatedSample:
    """Both fields are checked; when both are bad the rate error is reported."""
    rate = parse_rate(raw_rate)
    timestamp = parse_local_timestamp(raw_timestamp, tz)
    if rate is None:
        raise SampleValidationError(ValidationErrorKind.INVALID_RATE, INVALID_RATE_MESSAGE)
    if timestamp is None:
        raise SampleValidationError(ValidationErrorKind.INVALID_TIMESTAMP, INVALID_TIMESTAMP_MESSAGE)
    return ValidatedSample(beats_per_minute=rate, timestamp=timestamp)
