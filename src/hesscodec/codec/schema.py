"""Class definitions for typed objects.

A class definition is the signature an object carries on the wire: a class
name plus the ordered list of field names. This module also derives
definitions from Pydantic models, once per model class.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import Any, Tuple, Type

from pydantic import BaseModel

from ..exceptions import SchemaError


@dataclass(frozen=True)
class ClassDefinition:
    """Wire signature of a typed object.

    Attributes:
        name: Class name as sent on the wire
        fields: Field names, in wire order

    Example:
        >>> point = ClassDefinition("Point", ("x", "y"))
        >>> point.arity
        2
    """

    name: str
    fields: Tuple[str, ...]

    def __post_init__(self) -> None:
        # Accept any iterable of names but store a tuple so definitions hash
        object.__setattr__(self, "fields", tuple(self.fields))
        if len(set(self.fields)) != len(self.fields):
            raise SchemaError(f"Class {self.name!r}: duplicate field names in {self.fields}")

    @property
    def arity(self) -> int:
        return len(self.fields)

    @classmethod
    def from_model(cls, model_class: Type[BaseModel]) -> ClassDefinition:
        """Create a definition from a Pydantic model class.

        The wire name is ``hessian_type`` when the class declares one, else the
        class ``__name__``. Fields come from ``hessian_fields`` when declared,
        else from ``model_fields`` in declaration order.

        Args:
            model_class: Pydantic model class

        Returns:
            ClassDefinition for the model

        Raises:
            SchemaError: If ``hessian_fields`` names unknown fields
        """
        return definition_for(model_class)


@functools.lru_cache(maxsize=None)
def definition_for(model_class: Type[BaseModel]) -> ClassDefinition:
    """Build (once) and return the class definition of a model class."""
    name = getattr(model_class, "hessian_type", None) or model_class.__name__
    declared: Any = getattr(model_class, "hessian_fields", None)
    model_fields = model_class.model_fields

    if declared is None:
        fields = tuple(model_fields)
    else:
        fields = tuple(declared)
        unknown = [field for field in fields if field not in model_fields]
        if unknown:
            raise SchemaError(
                f"{model_class.__name__}: hessian_fields names unknown fields {unknown}"
            )

    return ClassDefinition(name, fields)
