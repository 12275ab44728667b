"""Fixed-point money parsing for ledger operations."""

from decimal import Decimal, InvalidOperation
from typing import Union

from card_ledger.exceptions import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")

AmountLike = Union[Decimal, int, str, float]


def to_amount(value: AmountLike, field: str = "amount") -> Decimal:
    """Validate a monetary input and return it quantized to cents.

    Parameters
    ----------
    value : Decimal | int | str | float
        Raw amount. Floats go through ``str`` so ``0.1`` stays ``0.10``.
    field : str
        Name used in error messages.

    Returns
    -------
    Decimal
        Strictly positive amount with exactly two fractional digits.

    Raises
    ------
    InvalidAmountError
        If the value is not numeric, not finite, not positive, or has
        significant digits beyond the cent.
    """
    if isinstance(value, bool):
        raise InvalidAmountError(f"{field} must be numeric, got {value!r}")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value)
        except InvalidOperation as exc:
            raise InvalidAmountError(f"{field} is not a number: {value!r}") from exc
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        raise InvalidAmountError(f"{field} must be numeric, got {type(value).__name__}")

    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be finite, got {value!r}")
    if amount <= 0:
        raise InvalidAmountError(f"{field} must be greater than zero, got {value!r}")
    # Any nonzero digit past the cent is rejected, at any input length
    _, digits, exponent = amount.as_tuple()
    if exponent < -2 and any(digits[exponent + 2 :]):
        raise InvalidAmountError(f"{field} has more than 2 fractional digits: {value!r}")

    try:
        return amount.quantize(CENT)
    except InvalidOperation as exc:
        raise InvalidAmountError(f"{field} is out of range: {value!r}") from exc


def format_amount(amount: Decimal) -> str:
    """Render an amount the way transaction descriptions show it."""
    return f"{amount.quantize(CENT):,.2f}"
