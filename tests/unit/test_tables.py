"""Tests for the reference, class definition and type name tables."""

from __future__ import annotations

import pytest

from hesscodec import ClassDefinition, RefIndexOutOfRange, TypeIndexOutOfRange
from hesscodec.codec.tables import ClassRegistry, ReferenceTable, TypeTable


class TestReferenceTable:
    """Test ReferenceTable."""

    def test_identity_lookup(self) -> None:
        """Test lookup is by identity, not equality."""
        refs = ReferenceTable()
        first = [1]
        assert refs.add(first) == 0
        assert refs.index_of(first) == 0
        assert refs.index_of([1]) is None
        assert first in refs
        assert [1] not in refs

    def test_anonymous_slots(self) -> None:
        """Test None reserves an index without a lookup entry."""
        refs = ReferenceTable()
        assert refs.add() == 0
        assert refs.add({}) == 1
        assert len(refs) == 2
        assert refs.get(0) is None

    def test_get_out_of_range(self) -> None:
        """Test unknown indices are reported with the table size."""
        refs = ReferenceTable()
        refs.add([])
        with pytest.raises(RefIndexOutOfRange, match="Ref index 1 out of range") as exc_info:
            refs.get(1, offset=7)
        assert exc_info.value.size == 1
        assert exc_info.value.offset == 7
        with pytest.raises(RefIndexOutOfRange):
            refs.get(-1)

    def test_truncate(self) -> None:
        """Test truncate forgets later entries."""
        refs = ReferenceTable()
        kept, dropped = [], []
        refs.add(kept)
        refs.add(dropped)
        refs.truncate(1)
        assert len(refs) == 1
        assert refs.index_of(kept) == 0
        assert refs.index_of(dropped) is None
        assert refs.add(dropped) == 1

    def test_clear(self) -> None:
        """Test clear empties the table."""
        refs = ReferenceTable()
        value: dict = {}
        refs.add(value)
        refs.clear()
        assert len(refs) == 0
        assert value not in refs


class TestClassRegistry:
    """Test ClassRegistry."""

    def test_register(self) -> None:
        """Test the first registration is new and later ones are not."""
        classes = ClassRegistry()
        point = ClassDefinition("Point", ("x", "y"))
        assert classes.register(point) == (0, True)
        assert classes.register(ClassDefinition("Point", ("x", "y"))) == (0, False)
        assert classes.register(ClassDefinition("Point", ("x",))) == (1, True)
        assert len(classes) == 2

    def test_append_duplicates(self) -> None:
        """Test the decode side appends every definition it reads."""
        classes = ClassRegistry()
        point = ClassDefinition("Point", ("x", "y"))
        assert classes.append(point) == 0
        assert classes.append(point) == 1
        assert classes.get(1) == point
        assert classes.index_of(point) == 0

    def test_get_out_of_range(self) -> None:
        """Test unknown indices name the table."""
        with pytest.raises(TypeIndexOutOfRange, match="Class definition index 2") as exc_info:
            ClassRegistry().get(2)
        assert exc_info.value.table == "class definition"

    def test_truncate(self) -> None:
        """Test truncate keeps earlier definitions."""
        classes = ClassRegistry()
        first = ClassDefinition("A", ())
        second = ClassDefinition("B", ())
        classes.register(first)
        classes.register(second)
        classes.truncate(1)
        assert classes.index_of(first) == 0
        assert classes.index_of(second) is None
        assert classes.register(second) == (1, True)


class TestTypeTable:
    """Test TypeTable."""

    def test_register(self) -> None:
        """Test type names get indices in first-seen order."""
        types = TypeTable()
        assert types.register("[int") == (0, True)
        assert types.register("[string") == (1, True)
        assert types.register("[int") == (0, False)
        assert types.get(1) == "[string"

    def test_get_out_of_range(self) -> None:
        """Test unknown indices name the table."""
        with pytest.raises(TypeIndexOutOfRange, match="Type name index 0"):
            TypeTable().get(0)

    def test_clear(self) -> None:
        """Test clear empties the table."""
        types = TypeTable()
        types.register("[int")
        types.clear()
        assert len(types) == 0
        assert types.index_of("[int") is None
