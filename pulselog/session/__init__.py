# -*- coding: utf-8 -*-
"""
Heart-rate session module
"""

from .controller import HeartRateSessionController
from .models import SampleValidationError, SessionState, ValidationErrorKind

__all__ = [
    'HeartRateSessionController',
    'SampleValidationError',
    'SessionState',
    'ValidationErrorKind',
]
