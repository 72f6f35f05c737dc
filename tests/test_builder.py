import pytest

from trenchdb.builder import (
    SQLFunction,
    build_insert,
    build_select,
    build_update,
    encrypt_values,
    quote_identifier,
)
from trenchdb.exception import TrenchError
from trenchdb.sql.statement import UpdateStatement


def test_select_all():
    assert build_select("users") == ("SELECT * FROM `users`", ())


def test_select_columns_where():
    query, values = build_select(
        "users", ["id", "name"], {"name": "x", "team": 2}
    )
    assert query == (
        "SELECT `id`, `name` FROM `users` WHERE `name` = ? AND `team` = ?"
    )
    assert values == ("x", 2)


def test_insert():
    query, values = build_insert("users", {"name": "x", "team": None})
    assert query == "INSERT INTO `users` (`name`, `team`) VALUES (?, ?)"
    assert values == ("x", None)


def test_insert_requires_data():
    with pytest.raises(TrenchError):
        build_insert("users", {})


def test_update_can_be_decomposed():
    query, values = build_update("users", {"name": "y"}, {"name": "x"})
    assert query == "UPDATE `users` SET `name` = ? WHERE `name` = ?"
    assert values == ("y", "x")
    update = UpdateStatement.parse(query)
    assert update.predicate_values(values) == ("x",)


def test_update_without_where():
    assert build_update("users", {"active": 0}) == (
        "UPDATE `users` SET `active` = ?",
        (0,),
    )


def test_update_requires_data():
    with pytest.raises(TrenchError):
        build_update("users", {}, {"id": 1})


def test_encrypt_values():
    encrypted = encrypt_values({"secret": "hunter2"})
    assert encrypted == {"secret": SQLFunction("PASSWORD", "hunter2")}
    query, values = build_update("accounts", encrypted, {"id": 1})
    assert query == (
        "UPDATE `accounts` SET `secret` = PASSWORD(?) WHERE `id` = ?"
    )
    assert values == ("hunter2", 1)


def test_encrypt_values_custom_function():
    encrypted = encrypt_values({"secret": "hunter2"}, function="MD5")
    assert encrypted["secret"].render() == "MD5(?)"


def test_encrypt_values_rejects_expressions():
    with pytest.raises(TrenchError):
        encrypt_values({"secret": "x"}, function="SLEEP(10); --")


@pytest.mark.parametrize(
    "name,expected",
    (
        ("users", "`users`"),
        ("app.users", "`app`.`users`"),
        ("we`ird", "`we``ird`"),
    ),
)
def test_quote_identifier(name, expected):
    assert quote_identifier(name) == expected


def test_quote_identifier_rejects_empty():
    with pytest.raises(TrenchError):
        quote_identifier("")
