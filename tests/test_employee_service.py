"""
Unit tests for employee form/query-string parsing helpers.
"""
from decimal import Decimal

from werkzeug.datastructures import MultiDict

from app.ems.modules.employees.service import EmployeeFilters, filters_from_args, parse_int, parse_salary


class TestParseInt:
    def test_valid(self):
        assert parse_int("42") == 42
        assert parse_int(" 7 ") == 7

    def test_blank_or_garbage(self):
        assert parse_int(None) is None
        assert parse_int("") is None
        assert parse_int("abc") is None
        assert parse_int("1.5") is None


class TestParseSalary:
    def test_rounds_to_cents(self):
        assert parse_salary("100") == Decimal("100.00")
        assert parse_salary("99.999") == Decimal("100.00")
        assert parse_salary("12.3") == Decimal("12.30")

    def test_comma_decimal_separator(self):
        assert parse_salary("1500,75") == Decimal("1500.75")

    def test_rejects_non_numbers(self):
        assert parse_salary(None) is None
        assert parse_salary("") is None
        assert parse_salary("ten") is None
        assert parse_salary("NaN") is None
        assert parse_salary("Infinity") is None

    def test_huge_value_is_parsed_without_rounding(self):
        assert parse_salary("1e30") == Decimal("1e30")
        assert parse_salary("-1e30") == Decimal("-1e30")

    def test_negative_is_parsed(self):
        # range checks belong to validation, not parsing
        assert parse_salary("-5") == Decimal("-5.00")


def test_filters_from_args():
    args = MultiDict({"department_id": "3", "profession_id": "", "search": "  ann "})
    assert filters_from_args(args) == EmployeeFilters(department_id=3, profession_id=None, search="ann")


def test_filters_from_empty_args():
    assert filters_from_args(MultiDict()) == EmployeeFilters()
