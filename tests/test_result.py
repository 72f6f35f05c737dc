from decimal import Decimal

import pytest

from trenchdb.sql.result import StatementResult, coerce_boolean


@pytest.mark.parametrize(
    "value,expected",
    (
        (1, True),
        (0, False),
        (True, True),
        (False, False),
        (Decimal("1"), True),
    ),
)
def test_single_zero_or_one_cell_is_coerced(value, expected):
    result = coerce_boolean([{"flag": value}])
    assert result is expected


@pytest.mark.parametrize("value", (2, -1, 0.5, "1", "0", None, b"1"))
def test_other_single_cells_are_returned_unchanged(value):
    rows = [{"flag": value}]
    assert coerce_boolean(rows) is rows


def test_multiple_rows_are_not_coerced():
    rows = [{"flag": 1}, {"flag": 0}]
    assert coerce_boolean(rows) is rows


def test_multiple_columns_are_not_coerced():
    rows = [{"flag": 1, "other": 0}]
    assert coerce_boolean(rows) is rows


def test_empty_row_set_is_not_coerced():
    rows = []
    assert coerce_boolean(rows) is rows


def test_statement_result_is_not_coerced():
    outcome = StatementResult(affected_rows=1)
    assert coerce_boolean(outcome) is outcome
