#!/usr/bin/env python3
"""Basic usage example for hesscodec.

This example demonstrates:
1. Encoding plain Python values
2. Defining a typed object with Pydantic
3. Decoding back to bound models or generic objects
4. Calculating encoded sizes
"""

from __future__ import annotations

from datetime import datetime, timezone

from hesscodec import GenericObject, HessianObject, Long, decode, encode, encoded_size


# Define an object class
class SensorReading(HessianObject):
    """One reading from a sensor.

    Instances are sent as typed objects: the class name and field names go on
    the wire once, then each object sends only its values.
    """

    sensor_id: int
    taken_at: datetime
    value: float
    unit: str = "C"


def main() -> None:
    """Run the basic usage example."""
    print("=" * 60)
    print("hesscodec Basic Usage Example")
    print("=" * 60)
    print()

    # Plain values
    print("1. Encoding plain values...")
    for value in (None, True, 7, 300, Long(7), 1.0, "héllo", b"\x01\x02", [1, 2, 3], {"a": 1}):
        data = encode(value)
        print(f"   {value!r:<20} -> {data.hex()} ({len(data)} bytes)")
    print()

    # Typed objects
    print("2. Creating sensor readings...")
    now = datetime(2024, 7, 1, 12, 0, tzinfo=timezone.utc)
    readings = [
        SensorReading(sensor_id=1, taken_at=now, value=21.5),
        SensorReading(sensor_id=2, taken_at=now, value=19.0),
        SensorReading(sensor_id=3, taken_at=now, value=22.25),
    ]
    for reading in readings:
        print(f"   {reading}")
    print()

    # Encode
    print("3. Encoding the list of readings...")
    encoded_data = encode(readings)
    print(f"   Encoded size: {len(encoded_data)} bytes")
    print(f"   Single reading alone: {encoded_size(readings[0])} bytes")
    print(f"   Hex: {encoded_data.hex()}")
    print()

    # Decode with a bound model
    print("4. Decoding with the SensorReading model bound...")
    decoded = decode(encoded_data, models=[SensorReading])
    for reading in decoded:
        print(f"   {type(reading).__name__}: {reading}")
    print()

    # Decode without models
    print("5. Decoding with no models bound...")
    generic = decode(encoded_data)
    for reading in generic:
        assert isinstance(reading, GenericObject)
        print(f"   {reading.name}: {reading.as_dict()}")
    print()

    # Verify round-trip
    print("6. Verifying round-trip...")
    if decoded == readings:
        print("   ✓ Round-trip successful! Decoded objects match originals.")
    else:
        print("   ✗ Round-trip failed!")
    print()

    print("=" * 60)
    print("Example complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
