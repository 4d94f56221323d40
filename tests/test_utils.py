from __future__ import annotations

import pytest
from pydantic import BaseModel, Field

from cqrs_ddd_sqlbuilder import (
    MalformedQueryError,
    null_to_default_number,
    null_to_default_string,
    quote_identifier,
)
from cqrs_ddd_sqlbuilder.utils import field_name, to_assignments


def test_quote_identifier() -> None:
    assert quote_identifier("name") == "`name`"
    assert quote_identifier("s.name") == "`s`.`name`"


def test_field_name_strips_qualifier() -> None:
    assert field_name("u.nick") == "nick"
    assert field_name("nick") == "nick"


def test_null_to_default_string() -> None:
    assert null_to_default_string("u.nick", "") == "ifnull(u.nick, '') as nick"
    assert null_to_default_string("nick", "o'k") == "ifnull(nick, 'o''k') as nick"


def test_null_to_default_string_escapes_backslash() -> None:
    assert null_to_default_string("nick", "a\\") == "ifnull(nick, 'a\\\\') as nick"


def test_null_to_default_number() -> None:
    assert null_to_default_number("score", 0) == "ifnull(score, 0) as score"
    assert null_to_default_number("s.ratio", 1.5) == "ifnull(s.ratio, 1.5) as ratio"


@pytest.mark.parametrize("default", [True, "0", None])
def test_null_to_default_number_rejects_non_numbers(default: object) -> None:
    with pytest.raises(TypeError):
        null_to_default_number("score", default)  # type: ignore[arg-type]


def test_to_assignments_keeps_order_and_excludes() -> None:
    result = to_assignments({"id": 1, "name": "a", "age": 2}, exclude="id")
    assert [(a.field, a.value) for a in result] == [("name", "a"), ("age", 2)]


def test_to_assignments_uses_model_aliases() -> None:
    class Row(BaseModel):
        class_id: int = Field(alias="classId")

    result = to_assignments(Row(classId=3))
    assert [(a.field, a.value) for a in result] == [("classId", 3)]


@pytest.mark.parametrize("payload", ["abc", b"abc", 5, None])
def test_to_assignments_rejects_scalars(payload: object) -> None:
    with pytest.raises(MalformedQueryError, match="payload must be"):
        to_assignments(payload)


def test_to_assignments_rejects_bad_pairs() -> None:
    with pytest.raises(MalformedQueryError, match="invalid"):
        to_assignments([("a", 1, 2)])
