#!/usr/bin/env python3
"""Object graph and session example for hesscodec.

This example demonstrates:
1. Shared and cyclic references
2. Streaming several values in one session
3. Printing a stream with the dump tool
"""

from __future__ import annotations

import io
from typing import List, Optional

from hesscodec import (
    Decoder,
    Encoder,
    HessianObject,
    ModelRegistry,
    StreamSink,
    StreamSource,
    encode,
)
from hesscodec.cli.dump import describe

models = ModelRegistry()


@models.register
class Employee(HessianObject):
    """Employee with an optional manager and direct reports."""

    name: str
    manager: Optional[Employee] = None
    reports: List[Employee] = []


Employee.model_rebuild()


def main() -> None:
    """Run the object graph example."""
    print("=" * 60)
    print("hesscodec Object Graph Example")
    print("=" * 60)
    print()

    # Build a graph with back-references
    print("1. Building an org chart with manager back-references...")
    boss = Employee(name="Grace")
    alan = Employee(name="Alan", manager=boss)
    ada = Employee(name="Ada", manager=boss)
    boss.reports = [alan, ada]
    data = encode(boss)
    print(f"   Encoded size: {len(data)} bytes")
    for line in describe(boss):
        print(f"   {line}")
    print()

    # Decode and check identity
    print("2. Decoding...")
    decoded = Decoder(data, models=models).read()
    manager = decoded.reports[0].manager
    print(f"   {decoded.reports[0].name}'s manager is the root object: {manager is decoded}")
    print()

    # Stream values in a session
    print("3. Streaming updates in one session...")
    stream = io.BytesIO()
    encoder = Encoder(StreamSink(stream))
    with encoder.session():
        encoder.write(boss)
        offset = stream.tell()
        encoder.write(ada)  # already sent: becomes a ref
        print(f"   First value: {offset} bytes, second value: {stream.tell() - offset} bytes")

    stream.seek(0)
    decoder = Decoder(StreamSource(stream), models=models)
    with decoder.session():
        first, second = list(decoder)
    print(f"   Second value is the same object as first.reports[1]: {second is first.reports[1]}")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
