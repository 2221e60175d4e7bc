"""Utility functions for hesscodec.

This module provides encoded size calculation.
"""

from __future__ import annotations

from .sizing import encoded_size, int32_size, int64_size

__all__ = [
    "encoded_size",
    "int32_size",
    "int64_size",
]
