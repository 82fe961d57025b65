"""Unit tests for value transforms and special handlers."""

import pytest

from vendor_feeds.processor.handlers import apply_handler, first_item, join_list, split_list, trim
from vendor_feeds.processor.path_resolver import ABSENT
from vendor_feeds.processor.transforms import (
    IN_STOCK,
    OUT_OF_STOCK,
    apply_transform,
    to_decimal,
    to_integer,
    to_numeric,
)


class TestNumeric:
    def test_strips_currency_and_separators(self):
        assert to_numeric("$1,234.56abc") == 1234.56

    def test_malformed_input_yields_zero(self):
        assert to_numeric("") == 0.0
        assert to_numeric("abc") == 0.0
        assert to_numeric("1.2.3") == 0.0
        assert to_numeric(None) == 0.0
        assert to_numeric({"a": 1}) == 0.0

    def test_numbers_pass_through(self):
        assert to_numeric(7) == 7.0
        assert to_numeric(2.5) == 2.5

    def test_non_finite_yields_zero(self):
        assert to_numeric(float("inf")) == 0.0
        assert to_numeric(float("nan")) == 0.0

    def test_negative_sign_is_stripped(self):
        assert to_numeric("-5") == 5.0


def test_decimal_has_two_fraction_digits():
    assert to_decimal("$1,234.5") == "1234.50"
    assert to_decimal("junk") == "0.00"
    assert to_decimal(3) == "3.00"


def test_integer_truncates():
    assert to_integer("12.9 pcs") == 12
    assert to_integer("") == 0


@pytest.mark.parametrize("value", ["1", "true", "Yes", " in stock ", 3, 0.5, [1]])
def test_boolean_in_stock(value):
    assert apply_transform(value, "boolean") == IN_STOCK


@pytest.mark.parametrize("value", ["0", "false", "no", "", 0, None, []])
def test_boolean_out_of_stock(value):
    assert apply_transform(value, "boolean") == OUT_OF_STOCK


def test_case_transforms():
    assert apply_transform("Gold", "uppercase") == "GOLD"
    assert apply_transform("Gold", "lowercase") == "gold"
    assert apply_transform(["A", 1], "lowercase") == ["a", 1]
    assert apply_transform(5, "uppercase") == 5


def test_unknown_transform_passes_value_through():
    assert apply_transform("$5", "titlecase") == "$5"


class TestHandlers:
    def test_split_list_trims_and_drops_empty_tokens(self):
        assert split_list("a.jpg, b.jpg ,, c.jpg") == ["a.jpg", "b.jpg", "c.jpg"]

    def test_split_list_mixed_delimiters(self):
        assert split_list("Rings; Gold|Sale") == ["Rings", "Gold", "Sale"]

    def test_split_list_of_list(self):
        assert split_list([" a ", "", None, 3]) == ["a", 3]

    def test_split_list_scalar_unchanged(self):
        assert split_list(5) == 5

    def test_join_list(self):
        assert join_list(["a", 1, None]) == "a,1"
        assert join_list("a") == "a"

    def test_first_item(self):
        assert first_item(["x", "y"]) == "x"
        assert first_item([]) is ABSENT
        assert first_item("x") == "x"

    def test_trim(self):
        assert trim("  x ") == "x"
        assert trim(1) == 1

    def test_stock_status_handler(self):
        assert apply_handler("5", "stock_status") == IN_STOCK
        assert apply_handler("0", "stock_status") == OUT_OF_STOCK

    def test_unknown_handler_passes_value_through(self):
        assert apply_handler("a,b", "explode") == "a,b"
