# -*- coding: utf-8 -*-
"""
Permission module
"""

from .gate import PermissionGate

__all__ = [
    'PermissionGate',
]
