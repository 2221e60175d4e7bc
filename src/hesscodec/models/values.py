"""Value wrappers for wire types with no exact native Python counterpart.

Most values map onto plain Python types (None, bool, int, float, str, bytes,
datetime, list, dict). The wrappers here carry the extra information the
wire can express: 64-bit integers, typed lists and maps, and objects whose
class has no bound model.
"""

from __future__ import annotations

import reprlib
from typing import Any, Iterable, Iterator, Mapping

from ..codec.schema import ClassDefinition


class Long(int):
    """An integer sent with the 64-bit integer tags.

    Plain ``int`` values are sent as 32-bit integers when they fit. Wrap a
    value in Long to force the 64-bit encoding. The decoder returns Long for
    every 64-bit integer it reads, so the distinction round-trips.

    Example:
        >>> Long(5) == 5
        True
    """

    def __repr__(self) -> str:
        return f"Long({int(self)})"


class TypedList(list):
    """A list that carries a wire type name.

    Example:
        >>> names = TypedList(["a", "b"], type_name="[string")
        >>> names.type_name
        '[string'
    """

    def __init__(self, items: Iterable[Any] = (), type_name: str | None = None) -> None:
        super().__init__(items)
        self.type_name = type_name

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        return f"TypedList({list.__repr__(self)}, type_name={self.type_name!r})"


class TypedMap(dict):
    """A dict that carries a wire type name."""

    def __init__(self, items: Mapping[Any, Any] | Iterable[Any] = (), type_name: str | None = None) -> None:
        super().__init__(items)
        self.type_name = type_name

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        return f"TypedMap({dict.__repr__(self)}, type_name={self.type_name!r})"


class GenericObject:
    """An object of a class the decoder has no model for.

    Field values are kept in definition order. Callers can also build
    GenericObject instances to send objects without declaring a model.

    Attributes:
        definition: The class definition
        values: Field values, one per definition field

    Example:
        >>> point = GenericObject(ClassDefinition("Point", ("x", "y")), [1, 2])
        >>> point["y"]
        2
        >>> point.as_dict()
        {'x': 1, 'y': 2}
    """

    __slots__ = ("definition", "values")

    def __init__(self, definition: ClassDefinition, values: Iterable[Any] = ()) -> None:
        self.definition = definition
        self.values = list(values)

    @property
    def name(self) -> str:
        return self.definition.name

    def __getitem__(self, field: str) -> Any:
        try:
            position = self.definition.fields.index(field)
        except ValueError:
            raise KeyError(field) from None
        return self.values[position]

    def get(self, field: str, default: Any = None) -> Any:
        try:
            return self[field]
        except (KeyError, IndexError):
            return default

    def as_dict(self) -> dict[str, Any]:
        return dict(zip(self.definition.fields, self.values))

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(zip(self.definition.fields, self.values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GenericObject):
            return NotImplemented
        if self is other:
            return True
        return self.definition == other.definition and self.values == other.values

    __hash__ = None  # type: ignore[assignment]

    @reprlib.recursive_repr()
    def __repr__(self) -> str:
        fields = ", ".join(f"{name}={value!r}" for name, value in self)
        return f"{self.definition.name}({fields})"
