"""Tests for the declarative column markers."""

from __future__ import annotations

import pytest

from activerow.core.errors import DefinitionError
from activerow.core.markers import (
    AutoIncrement,
    Column,
    Id,
    MaxLength,
    Nullable,
    attach_markers,
    column_name_override,
    is_column_marker,
    markers_of,
)


class TestMarkers:
    def test_flag_reprs(self):
        assert [repr(m) for m in (Id, Nullable, AutoIncrement)] == ["Id", "Nullable", "AutoIncrement"]

    def test_column_markers(self):
        assert is_column_marker(Id)
        assert is_column_marker(Column)
        assert is_column_marker(Column("x"))
        assert not is_column_marker(Nullable)
        assert not is_column_marker(MaxLength(3))

    def test_name_override(self):
        assert column_name_override((Id, Column("user_id"))) == "user_id"
        assert column_name_override((Column(),)) is None
        assert column_name_override((Column, Nullable)) is None

    def test_column_name_must_be_string(self):
        with pytest.raises(DefinitionError):
            Column(42)

    def test_bare_column_on_function(self):
        def total(self):
            return 1

        with pytest.raises(DefinitionError, match="Functions as columns are unsupported"):
            Column(total)

    @pytest.mark.parametrize("bound", [-1, True, "5", 1.5])
    def test_max_length_bound(self, bound):
        with pytest.raises(DefinitionError):
            MaxLength(bound)


class TestAttachedMarkers:
    def test_decorator_records_markers(self):
        @Nullable
        @Column("total")
        def total(self):
            return 1

        assert markers_of(total) == (Column("total"), Nullable)

    def test_property_markers_live_on_getter(self):
        prop = attach_markers(property(lambda self: 1), Id)
        assert markers_of(prop) == (Id,)

    def test_unmarked(self):
        assert markers_of(len) == ()

    def test_cannot_attach(self):
        with pytest.raises(DefinitionError):
            attach_markers(len, Id)
