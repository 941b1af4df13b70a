"""Tests for the Record lifecycle engine.

Covers:
- The User scenario end to end on in-memory SQLite
- Zero-row failures for every operation
- NULL / MaxLength checks that fire before any SQL runs
- find() conditions handling
- Provider binding and lookup
- The SQL each operation sends (MySQL dialect, mocked connection)
"""

from __future__ import annotations

from typing import Annotated, Optional
from unittest.mock import MagicMock

import pytest

from activerow.core.errors import (
    MaxLengthError,
    NoConnectionError,
    NoRowsAffectedError,
    NullValueError,
    RecordException,
    RecordNotFoundError,
)
from activerow.core.markers import AutoIncrement, Column, Id, MaxLength, Nullable
from activerow.core.record import Record
from activerow.core.values import Value


class User(Record, table="users"):
    id: Annotated[Optional[int], Id, AutoIncrement] = None
    name: Annotated[str, Column, MaxLength(50)] = None
    email: Annotated[Optional[str], Column, Nullable] = None


class Tag(Record, table="tags"):
    code: Annotated[str, Id, MaxLength(5)] = None
    label: Annotated[str, Column("title")] = ""


class Member(Record, table="users"):
    id: Annotated[int, Id, AutoIncrement] = None
    name: Annotated[str, Column] = ""
    email: Annotated[str, Column, Nullable] = None


def executed_sql(provider) -> list[str]:
    cursor = provider.conn.cursor.return_value
    return [c.args[0] for c in cursor.execute.call_args_list]


# =============================================================================
# Scenario
# =============================================================================


class TestUserScenario:
    def test_full_lifecycle(self, users_db):
        user = User(name="Ada", email=None)
        user.create()
        assert user.id is not None

        fetched = User.get(user.id)
        assert fetched.name == "Ada"
        assert fetched.email is None

        fetched.email = "a@x.com"
        fetched.name = "changed locally only"
        fetched.save("email")

        again = User.get(user.id)
        assert again.email == "a@x.com"
        assert again.name == "Ada"

        again.remove()
        with pytest.raises(RecordException):
            User.get(user.id)

    def test_round_trip_all_columns(self, users_db):
        user = User(name="Grace", email="g@navy.mil")
        user.create()
        fetched = User.get(user.id)
        assert (fetched.id, fetched.name, fetched.email) == (user.id, "Grace", "g@navy.mil")

    def test_nullable_column_without_optional(self, users_db):
        member = Member(name="Ada", email=None)
        member.create()
        assert Member.get(member.id).email is None
        assert [m.email for m in Member.find(name="Ada")] == [None]

        member.email = "a@x.com"
        member.save(["email"])
        assert Member.get(member.id).email == "a@x.com"

    def test_ids_increment(self, users_db):
        first, second = User(name="a"), User(name="b")
        first.create()
        second.create()
        assert second.id == first.id + 1

    def test_save_all_columns(self, users_db):
        user = User(name="Ada")
        user.create()
        user.name, user.email = "Lovelace", "l@x.com"
        user.save()
        fetched = User.get(user.id)
        assert (fetched.name, fetched.email) == ("Lovelace", "l@x.com")

    def test_get_does_not_call_init(self, users_db, monkeypatch):
        user = User(name="Ada")
        user.create()
        monkeypatch.setattr(User, "__init__", MagicMock(side_effect=AssertionError("called")))
        assert User.get(user.id).name == "Ada"

    def test_repr(self, users_db):
        user = User(name="Ada")
        assert repr(user) == "User(id=None, name='Ada', email=None)"


# =============================================================================
# find()
# =============================================================================


class TestFind:
    @pytest.fixture(autouse=True)
    def people(self, users_db):
        for name, email in [("Ada", "a@x.com"), ("Ada", None), ("Grace", "g@x.com")]:
            User(name=name, email=email).create()

    def test_keywords(self):
        found = User.find(name="Ada")
        assert len(found) == 2
        assert all(isinstance(u, User) for u in found)

    def test_mapping(self):
        found = User.find({"name": "Ada", "email": "a@x.com"})
        assert [u.email for u in found] == ["a@x.com"]

    def test_mapping_and_keywords_merge(self):
        found = User.find({"name": "Grace"}, email="g@x.com")
        assert len(found) == 1

    def test_no_match(self):
        with pytest.raises(RecordNotFoundError, match="No records found for users"):
            User.find(name="Nobody")

    def test_unknown_column(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(RecordException):
            User.find(nickname="x")
        mock_provider.acquire.assert_not_called()

    def test_no_conditions(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(RecordException):
            User.find()
        mock_provider.acquire.assert_not_called()


# =============================================================================
# Zero-row failures
# =============================================================================


class TestZeroRows:
    def test_get_missing(self, users_db):
        with pytest.raises(RecordNotFoundError, match="No records found for users at 999"):
            User.get(999)

    def test_save_missing(self, users_db):
        ghost = User(id=999, name="ghost")
        with pytest.raises(NoRowsAffectedError, match=r"No records were updated for User by save\(\)\."):
            ghost.save()

    def test_remove_missing(self, users_db):
        ghost = User(id=999, name="ghost")
        with pytest.raises(NoRowsAffectedError, match=r"No records were removed for User by remove\(\)\."):
            ghost.remove()

    def test_create_affecting_nothing(self, mock_provider):
        mock_provider.conn.cursor.return_value.rowcount = 0
        User.use(mock_provider)
        with pytest.raises(NoRowsAffectedError, match=r"No records were created for User by create\(\)\."):
            User(name="Ada").create()

    def test_not_found_is_record_exception(self, users_db):
        with pytest.raises(RecordException):
            User.get(1)


# =============================================================================
# Checks before SQL
# =============================================================================


class TestChecksBeforeSQL:
    def test_null_name_on_create(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(NullValueError):
            User().create()
        mock_provider.acquire.assert_not_called()

    def test_max_length_on_create(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(MaxLengthError):
            User(name="x" * 51).create()
        mock_provider.acquire.assert_not_called()

    def test_max_length_on_save(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(MaxLengthError):
            User(id=1, name="x" * 51).save("name")
        mock_provider.acquire.assert_not_called()

    def test_restricted_save_skips_other_checks(self, mock_provider):
        mock_provider.conn.cursor.return_value.rowcount = 1
        User.use(mock_provider)
        User(id=1, name=None, email="e").save("email")
        assert executed_sql(mock_provider) == [
            "UPDATE `users` SET `email`=%s WHERE `id`=%s LIMIT 1"
        ]

    def test_null_id_on_remove(self, mock_provider):
        Tag.use(mock_provider)
        with pytest.raises(NullValueError):
            Tag(label="x").remove()
        mock_provider.acquire.assert_not_called()

    def test_unknown_save_column(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(RecordException):
            User(id=1, name="a").save("nickname")
        mock_provider.acquire.assert_not_called()

    @pytest.mark.parametrize("columns", [["nickname"], ("email", "nickname")])
    def test_unknown_column_in_sequence(self, mock_provider, columns):
        User.use(mock_provider)
        with pytest.raises(RecordException):
            User(id=1, name="a").save(columns)
        mock_provider.acquire.assert_not_called()

    def test_non_string_save_column(self, mock_provider):
        User.use(mock_provider)
        with pytest.raises(RecordException):
            User(id=1, name="a").save(1)
        mock_provider.acquire.assert_not_called()


# =============================================================================
# Emitted SQL (MySQL)
# =============================================================================


class TestEmittedSQL:
    @pytest.fixture(autouse=True)
    def bind(self, mock_provider):
        cursor = mock_provider.conn.cursor.return_value
        cursor.rowcount = 1
        cursor.description = [("LAST_INSERT_ID()",)]
        cursor.fetchall.return_value = [(41,)]
        User.use(mock_provider)
        Tag.use(mock_provider)

    def test_create_then_last_insert_id_on_same_connection(self, mock_provider):
        user = User(name="Ada")
        user.create()
        assert executed_sql(mock_provider) == [
            "INSERT INTO `users` (`id`, `name`, `email`) VALUES (%s, %s, %s)",
            "SELECT LAST_INSERT_ID()",
        ]
        assert user.id == 41
        mock_provider.acquire.assert_called_once()
        mock_provider.release.assert_called_once_with(mock_provider.conn)

    def test_create_without_auto_increment(self, mock_provider):
        Tag(code="py", label="Python").create()
        assert executed_sql(mock_provider) == [
            "INSERT INTO `tags` (`code`, `title`) VALUES (%s, %s)",
        ]

    def test_get(self, mock_provider):
        cursor = mock_provider.conn.cursor.return_value
        cursor.description = [("code",), ("title",)]
        cursor.fetchall.return_value = [("py", "Python")]
        tag = Tag.get("py")
        assert executed_sql(mock_provider) == [
            "SELECT `code`, `title` FROM `tags` WHERE `code`=%s LIMIT 1",
        ]
        assert (tag.code, tag.label) == ("py", "Python")

    def test_remove(self, mock_provider):
        Tag(code="py").remove()
        cursor = mock_provider.conn.cursor.return_value
        assert cursor.execute.call_args.args == ("DELETE FROM `tags` WHERE `code`=%s LIMIT 1", ("py",))

    def test_save_parameters_in_order(self, mock_provider):
        User(id=3, name="Ada", email="a@x.com").save()
        cursor = mock_provider.conn.cursor.return_value
        assert cursor.execute.call_args.args == (
            "UPDATE `users` SET `id`=%s, `name`=%s, `email`=%s WHERE `id`=%s LIMIT 1",
            (3, "Ada", "a@x.com", 3),
        )

    @pytest.mark.parametrize("columns", [("email",), (["email"],), (("email",),)])
    def test_save_column_subset_shapes(self, mock_provider, columns):
        User(id=3, name="Ada", email="a@x.com").save(*columns)
        cursor = mock_provider.conn.cursor.return_value
        assert cursor.execute.call_args.args == (
            "UPDATE `users` SET `email`=%s WHERE `id`=%s LIMIT 1",
            ("a@x.com", 3),
        )

    def test_released_after_driver_error(self, mock_provider):
        mock_provider.conn.cursor.return_value.execute.side_effect = RuntimeError("gone away")
        with pytest.raises(RuntimeError):
            Tag(code="py").remove()
        mock_provider.release.assert_called_once()


# =============================================================================
# Query helpers and provider binding
# =============================================================================


class TestQueryHelpers:
    def test_names(self):
        assert User.get_table_name() == "users"
        assert User.get_id_column() == "id"
        assert User.get_column_names() == ("id", "name", "email")

    def test_column_values(self):
        assert User.column_values(User(name="a")) == [Value.of(None), Value.of("a"), Value.of(None)]

    def test_query_for_get(self):
        assert User.query_for_get(1).build() == "SELECT `id`, `name`, `email` FROM `users` WHERE `id`=%s LIMIT 1"

    def test_query_for_find(self):
        q = User.query_for_find({"name": "a", "email": "b"})
        assert q.build() == "SELECT `id`, `name`, `email` FROM `users` WHERE `name`=%s AND `email`=%s"
        assert q.parameters == [Value.of("a"), Value.of("b")]

    def test_init_rejects_unknown_field(self):
        with pytest.raises(TypeError):
            User(nickname="x")


class TestProviderBinding:
    def test_no_provider(self):
        with pytest.raises(NoConnectionError, match="Record has no database connection."):
            User.get(1)

    def test_global_binding(self, mock_provider):
        Record.use(mock_provider)
        assert User.get_provider() is mock_provider
        assert Tag.get_provider() is mock_provider

    def test_entity_binding_overrides_global(self, mock_provider):
        other = MagicMock()
        Record.use(mock_provider)
        User.use(other)
        assert User.get_provider() is other
        assert Tag.get_provider() is mock_provider

    def test_unbinding_falls_back(self, mock_provider):
        Record.use(mock_provider)
        User.use(MagicMock())
        User.use(None)
        assert User.get_provider() is mock_provider
