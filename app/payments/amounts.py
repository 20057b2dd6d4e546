"""
Conversion between major-unit Decimals and integer minor units.

All gateway amounts are integers in the currency's minor unit (paise for
INR). Order totals are Decimals in major units. Conversion is exact: a
value that does not fit in two decimal places is rejected, never rounded.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from payments.exceptions import PaymentValidationError

MINOR_UNITS_PER_MAJOR = 100


def to_minor_units(amount: Decimal | int | str) -> int:
    """
    Convert a major-unit amount to integer minor units.

    Example:
        to_minor_units(Decimal("50.00"))  # 5000
        to_minor_units(Decimal("50.005"))  # raises PaymentValidationError

    Raises:
        PaymentValidationError: If the value is not a finite number or has
            more than two decimal places
    """
    if isinstance(amount, float):
        raise PaymentValidationError(
            "Amounts must be Decimal, not float",
            error_code="INVALID_AMOUNT",
        )
    try:
        value = Decimal(amount)
    except (InvalidOperation, TypeError, ValueError) as e:
        raise PaymentValidationError(
            "Amount is not a number",
            error_code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        ) from e

    if not value.is_finite():
        raise PaymentValidationError(
            "Amount is not a finite number",
            error_code="INVALID_AMOUNT",
            details={"amount": str(amount)},
        )

    minor = value * MINOR_UNITS_PER_MAJOR
    if minor != minor.to_integral_value():
        raise PaymentValidationError(
            "Amount has more than two decimal places",
            error_code="INVALID_AMOUNT_PRECISION",
            details={"amount": str(amount)},
        )
    return int(minor)


def to_major_units(amount: int) -> Decimal:
    """Convert integer minor units to a two-place Decimal."""
    return (Decimal(amount) / MINOR_UNITS_PER_MAJOR).quantize(Decimal("0.01"))
