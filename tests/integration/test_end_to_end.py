"""End-to-end integration tests."""

from __future__ import annotations

import socket
from datetime import datetime, timezone
from pathlib import Path
from typing import ClassVar, List, Optional

import pytest

from hesscodec import (
    Decoder,
    Encoder,
    GenericObject,
    HessianObject,
    Long,
    ModelRegistry,
    StreamSink,
    StreamSource,
    TypedList,
    decode,
    decode_all,
    dump,
    encode,
    encoded_size,
    load,
)

registry = ModelRegistry()


@registry.register
class Customer(HessianObject):
    """Customer record shared by several orders."""

    hessian_type: ClassVar[Optional[str]] = "com.example.shop.Customer"

    customer_id: Long
    name: str
    email: Optional[str] = None


@registry.register
class LineItem(HessianObject):
    """One product line within an order."""

    hessian_type: ClassVar[Optional[str]] = "com.example.shop.LineItem"

    sku: str
    quantity: int
    unit_price: float


@registry.register
class Order(HessianObject):
    """Order referencing its customer and its line items."""

    hessian_type: ClassVar[Optional[str]] = "com.example.shop.Order"

    order_id: Long
    customer: Customer
    placed_at: datetime
    items: List[LineItem]
    notes: Optional[bytes] = None
    previous: Optional[Order] = None


Order.model_rebuild()


@pytest.fixture
def orders() -> list:
    """Two orders from the same customer, the second pointing back at the first."""
    alice = Customer(customer_id=Long(10_000_000_001), name="Alice", email="alice@example.com")
    first = Order(
        order_id=Long(1),
        customer=alice,
        placed_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
        items=[
            LineItem(sku="WIDGET-1", quantity=3, unit_price=2.5),
            LineItem(sku="GADGET-7", quantity=1, unit_price=19.99),
        ],
    )
    second = Order(
        order_id=Long(2),
        customer=alice,
        placed_at=datetime(2024, 5, 2, 14, 0, tzinfo=timezone.utc),
        items=[LineItem(sku="WIDGET-1", quantity=10, unit_price=2.25)],
        notes=b"\x00gift-wrap",
        previous=first,
    )
    return [first, second]


class TestOrderGraph:
    """Test a realistic object graph round-trip."""

    def test_graph_with_models(self, orders: list) -> None:
        """Test models, shared objects and back-references survive a round-trip."""
        decoded = decode(encode(orders), models=registry)

        first, second = decoded
        assert isinstance(first, Order)
        assert first.customer.name == "Alice"
        assert first.customer.customer_id == 10_000_000_001
        assert isinstance(first.customer.customer_id, Long)
        assert first.placed_at == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert [item.sku for item in first.items] == ["WIDGET-1", "GADGET-7"]
        assert second.notes == b"\x00gift-wrap"

        assert second.customer is first.customer
        assert second.previous is first

    def test_definitions_sent_once(self, orders: list) -> None:
        """Test each class definition appears once in the encoding."""
        data = encode(orders)
        for name in ("Customer", "LineItem", "Order"):
            assert data.count(f"com.example.shop.{name}".encode()) == 1

    def test_graph_without_models(self, orders: list) -> None:
        """Test the same bytes decode generically when no models are bound."""
        first, second = decode(encode(orders))
        assert isinstance(first, GenericObject)
        assert first.name == "com.example.shop.Order"
        assert first["customer"]["email"] == "alice@example.com"
        assert second["previous"] is first
        assert second["customer"] is first["customer"]

    def test_generic_reencode(self, orders: list) -> None:
        """Test generically decoded objects encode back to identical bytes."""
        data = encode(orders)
        assert encode(decode(data)) == data

    def test_shared_customer_is_smaller(self, orders: list) -> None:
        """Test a shared object costs one ref instead of a second copy."""
        shared = encoded_size(orders)
        orders[1].customer = orders[0].customer.model_copy()
        assert encoded_size(orders) > shared


class TestFileTransport:
    """Test writing and reading files."""

    def test_dump_load_file(self, tmp_path: Path, orders: list) -> None:
        """Test one value through a file on disk."""
        path = tmp_path / "orders.bin"
        with path.open("wb") as stream:
            dump(orders, stream)
        with path.open("rb") as stream:
            first, second = load(stream, models=registry)
        assert second.previous is first

    def test_log_file_session(self, tmp_path: Path, orders: list) -> None:
        """Test appending several values to a log in one session."""
        path = tmp_path / "log.bin"
        with path.open("wb") as stream:
            encoder = Encoder(StreamSink(stream))
            with encoder.session():
                for order in orders:
                    encoder.write(order)
                encoder.write(TypedList([order.order_id for order in orders], type_name="[long"))

        values = decode_all(path.read_bytes(), models=registry, session=True)
        assert len(values) == 3
        assert values[1].previous is values[0]
        assert values[2] == [1, 2]
        assert values[2].type_name == "[long"


class TestSocketTransport:
    """Test streaming values over a socket."""

    def test_socket_session(self, orders: list) -> None:
        """Test a session over a connected socket pair."""
        left, right = socket.socketpair()
        with left, right:
            writer = left.makefile("wb")
            encoder = Encoder(StreamSink(writer, close_stream=True))
            with encoder.session():
                for order in orders:
                    encoder.write(order)
                encoder.write("done")
            encoder.sink.close()
            left.shutdown(socket.SHUT_WR)

            reader = right.makefile("rb")
            decoder = Decoder(StreamSource(reader, close_stream=True), models=registry)
            with decoder.session():
                received = list(decoder)
            decoder.source.close()

        assert received[-1] == "done"
        assert received[1].previous is received[0]
        assert received[1].customer is received[0].customer
