"""Tests for monetary amount parsing."""

from decimal import Decimal

import pytest

from card_ledger.exceptions import InvalidAmountError
from card_ledger.ledger.amounts import format_amount, to_amount


class TestToAmount:
    """Tests for to_amount."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            (Decimal("12.5"), Decimal("12.50")),
            (100, Decimal("100.00")),
            ("0.01", Decimal("0.01")),
            ("1.000", Decimal("1.00")),
            (0.1, Decimal("0.10")),
            (19.99, Decimal("19.99")),
        ],
    )
    def test_accepts_valid_amounts(self, value: object, expected: Decimal) -> None:
        result = to_amount(value)  # type: ignore[arg-type]

        assert result == expected
        assert result.as_tuple().exponent == -2

    @pytest.mark.parametrize("value", [0, "0.00", -5, Decimal("-0.01")])
    def test_rejects_non_positive(self, value: object) -> None:
        with pytest.raises(InvalidAmountError, match="greater than zero"):
            to_amount(value)  # type: ignore[arg-type]

    @pytest.mark.parametrize("value", ["NaN", "Infinity", Decimal("-Infinity"), float("inf")])
    def test_rejects_non_finite(self, value: object) -> None:
        with pytest.raises(InvalidAmountError, match="finite"):
            to_amount(value)  # type: ignore[arg-type]

    @pytest.mark.parametrize(
        "value",
        [
            "10.005",
            "1.0000000000000000000000000001",
            Decimal("100.00000000000000000000000001"),
            Decimal("1E-30"),
        ],
    )
    def test_rejects_sub_cent_precision(self, value: object) -> None:
        with pytest.raises(InvalidAmountError, match="more than 2 fractional digits"):
            to_amount(value)  # type: ignore[arg-type]

    def test_accepts_long_trailing_zeros(self) -> None:
        assert to_amount("7.50000000000000000000000000000000") == Decimal("7.50")

    @pytest.mark.parametrize("value", ["ten", "", "1,000"])
    def test_rejects_non_numeric_strings(self, value: str) -> None:
        with pytest.raises(InvalidAmountError, match="not a number"):
            to_amount(value)

    @pytest.mark.parametrize("value", [True, None, [10]])
    def test_rejects_other_types(self, value: object) -> None:
        with pytest.raises(InvalidAmountError, match="must be numeric"):
            to_amount(value)  # type: ignore[arg-type]

    def test_field_name_in_message(self) -> None:
        with pytest.raises(InvalidAmountError, match="initial_balance"):
            to_amount(-1, field="initial_balance")


class TestFormatAmount:
    """Tests for format_amount."""

    def test_thousands_and_cents(self) -> None:
        assert format_amount(Decimal("1234.5")) == "1,234.50"
        assert format_amount(Decimal("0.07")) == "0.07"
