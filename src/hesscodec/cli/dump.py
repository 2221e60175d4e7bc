"""Stream dump CLI command."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from ..codec.decoder import Decoder
from ..codec.schema import definition_for
from ..models.values import GenericObject, Long, TypedList, TypedMap
from ..transport.buffer import BufferSource

_TEXT_PREVIEW = 60


def dump_file(file_path: Path, session: bool = False) -> int:
    """Print every value encoded in a file.

    Args:
        file_path: Path to a file of concatenated encoded values
        session: Keep tables across values

    Returns:
        Number of values printed
    """
    data = file_path.read_bytes()
    return dump_bytes(data, source_name=str(file_path), session=session)


def dump_bytes(data: bytes, source_name: str = "input", session: bool = False) -> int:
    """Print every value encoded in data.

    Returns:
        Number of values printed
    """
    print("|" * 7, "hesscodec: Hessian Binary Codec", "|" * 7)
    print(f"Decoding {source_name} ({len(data)} bytes)")
    print()

    decoder = Decoder(BufferSource(data))
    count = 0
    if session:
        with decoder.session():
            count = _dump_values(decoder)
    else:
        count = _dump_values(decoder)

    print()
    print(f"{count} value{'s' if count != 1 else ''} decoded.")
    return count


def _dump_values(decoder: Decoder) -> int:
    count = 0
    while not decoder.at_end():
        offset = decoder.offset
        value = decoder.read()
        print(f"{'=' * 19} #{count} @ offset {offset} {'=' * 19}")
        for line in describe(value):
            print(line)
        count += 1
    return count


def describe(value: Any) -> list[str]:
    """Render a decoded value as indented lines.

    Shared composites are printed once with an anchor (``&1``) and referred
    to afterwards (``*1``), so cyclic graphs print in finite space.

    Example:
        >>> describe([1, "a"])
        ['list[2] &1', '    [0] int 1', "    [1] string 'a'"]
    """
    lines: list[str] = []
    _render(value, "", 0, {}, lines)
    return lines


def _render(value: Any, label: str, depth: int, anchors: dict[int, int], lines: list[str]) -> None:
    pad = "    " * depth

    if not isinstance(value, (list, dict, GenericObject, BaseModel)):
        lines.append(f"{pad}{label}{_scalar(value)}")
        return

    if id(value) in anchors:
        lines.append(f"{pad}{label}*{anchors[id(value)]}")
        return
    anchors[id(value)] = len(anchors) + 1
    anchor = f"&{anchors[id(value)]}"

    if isinstance(value, list):
        type_info = f" {value.type_name}" if isinstance(value, TypedList) else ""
        lines.append(f"{pad}{label}list{type_info}[{len(value)}] {anchor}")
        for i, item in enumerate(value):
            _render(item, f"[{i}] ", depth + 1, anchors, lines)
    elif isinstance(value, dict):
        type_info = f" {value.type_name}" if isinstance(value, TypedMap) else ""
        lines.append(f"{pad}{label}map{type_info}[{len(value)}] {anchor}")
        for key, item in value.items():
            _render(item, f"{_scalar(key)}: ", depth + 1, anchors, lines)
    elif isinstance(value, GenericObject):
        lines.append(f"{pad}{label}object {value.name} {anchor}")
        for name, item in value:
            _render(item, f"{name}: ", depth + 1, anchors, lines)
    else:
        definition = definition_for(type(value))
        lines.append(f"{pad}{label}object {definition.name} ({type(value).__name__}) {anchor}")
        for name in definition.fields:
            _render(getattr(value, name, None), f"{name}: ", depth + 1, anchors, lines)


def _scalar(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Long):
        return f"long {int(value)}"
    if isinstance(value, int):
        return f"int {value}"
    if isinstance(value, float):
        return f"double {value!r}"
    if isinstance(value, str):
        if len(value) > _TEXT_PREVIEW:
            return f"string[{len(value)}] {value[:_TEXT_PREVIEW]!r}..."
        return f"string {value!r}"
    if isinstance(value, bytes):
        preview = value[:16].hex()
        return f"binary[{len(value)}] {preview}{'...' if len(value) > 16 else ''}"
    if isinstance(value, datetime):
        return f"date {value.isoformat()}"
    # Composite used as a map key
    return f"{type(value).__name__} {value!r}"
