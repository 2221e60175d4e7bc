"""Hessian binary codec.

This module provides the encoder and decoder, the wire tag table, and the
per-pass tables (references, class definitions, type names) that both sides
keep in step.
"""

from __future__ import annotations

from .constants import WireKind, classify
from .decoder import Decoder, decode, decode_all, load
from .encoder import Encoder, dump, encode
from .schema import ClassDefinition, definition_for
from .tables import ClassRegistry, ReferenceTable, TypeTable

__all__ = [
    "encode",
    "decode",
    "decode_all",
    "dump",
    "load",
    "Encoder",
    "Decoder",
    "ClassDefinition",
    "definition_for",
    "ReferenceTable",
    "ClassRegistry",
    "TypeTable",
    "WireKind",
    "classify",
]
