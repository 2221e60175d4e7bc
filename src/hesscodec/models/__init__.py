"""Value model for hesscodec.

This module provides the HessianObject base class for typed objects, the
ModelRegistry used to bind wire class names to models, and wrappers for
wire types with no exact native Python counterpart.
"""

from __future__ import annotations

from .base import HessianObject, ModelRegistry
from .values import GenericObject, Long, TypedList, TypedMap

__all__ = [
    "HessianObject",
    "ModelRegistry",
    "GenericObject",
    "Long",
    "TypedList",
    "TypedMap",
]
