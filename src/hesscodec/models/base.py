"""Base model class and model bindings for typed objects.

This module provides the HessianObject class that typed objects should
inherit from, and the ModelRegistry that tells a decoder which Python class
to build for a wire class name.
"""

from __future__ import annotations

from typing import Any, ClassVar, Iterable, Iterator, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict

from ..codec.schema import ClassDefinition, definition_for


class HessianObject(BaseModel):
    """Base class for objects sent as typed Hessian objects.

    Any Pydantic model can be encoded; subclassing HessianObject adds the
    class-level options below and a configuration suited to object graphs.

    Example:
        >>> from typing import Optional
        >>> class Node(HessianObject):
        ...     hessian_type: ClassVar[Optional[str]] = "com.example.Node"
        ...
        ...     value: int
        ...     next: Optional["Node"] = None

    Attributes:
        hessian_type: Class name sent on the wire (default: the class name)
        hessian_fields: Fields sent on the wire, in order (default: all
            model fields in declaration order)
    """

    model_config = ConfigDict(
        # Fields may hold GenericObject, TypedList and other plain classes
        arbitrary_types_allowed=True,
        # Assignment stays unvalidated so graphs can be closed into cycles
        validate_assignment=False,
        extra="forbid",
    )

    hessian_type: ClassVar[Optional[str]] = None
    hessian_fields: ClassVar[Optional[Tuple[str, ...]]] = None

    @classmethod
    def hessian_definition(cls) -> ClassDefinition:
        """Return the class definition sent for instances of this class."""
        return definition_for(cls)


class ModelRegistry:
    """Maps wire class names to the model classes a decoder should build.

    Each decoder takes its own registry; there is no process-wide default.
    ``register`` returns the class, so it also works as a decorator.

    Example:
        >>> registry = ModelRegistry()
        >>> @registry.register
        ... class Point(HessianObject):
        ...     x: int
        ...     y: int
        >>> registry.get("Point") is Point
        True
    """

    def __init__(self, models: Iterable[Type[BaseModel]] = ()) -> None:
        self._models: dict[str, Type[BaseModel]] = {}
        for model in models:
            self.register(model)

    def register(self, model_class: Type[BaseModel]) -> Type[BaseModel]:
        """Bind a model class to its wire name.

        Raises:
            ValueError: If a different class is already bound to that name
        """
        name = definition_for(model_class).name
        existing = self._models.get(name)
        if existing is not None and existing is not model_class:
            raise ValueError(
                f"Class name {name!r} already registered to {existing.__name__}. "
                f"Cannot register {model_class.__name__} with the same name."
            )
        self._models[name] = model_class
        return model_class

    def get(self, name: str) -> Type[BaseModel] | None:
        return self._models.get(name)

    def __contains__(self, name: Any) -> bool:
        return name in self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)
