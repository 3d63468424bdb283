"""
Standardize numeric input for locale formatting and keyed part extraction.

Formatting needs an exact decimal view of the input (no binary float noise in
the rendered digits), while consumers of keyed parts need a plain Python number
for comparisons. This module provides both conversions.
"""

# Standard library -----------------------------------------------------------------------------------------------------
from decimal import Decimal, InvalidOperation, localcontext
from fractions import Fraction

# Local ----------------------------------------------------------------------------------------------------------------
from .utils import fmt_type

_NAN = Decimal("NaN")


# Methods --------------------------------------------------------------------------------------------------------------

def std_decimal(value) -> Decimal:
    """
    Convert a numeric value or numeric text to Decimal.

    Parameters
    ----------
    value : int | float | Decimal | Fraction | str | SupportsFloat
        Number to convert. Text is parsed with Decimal syntax after stripping
        surrounding whitespace, so "1e3", "-0.5", "Infinity" and "NaN" are
        accepted.

    Returns
    -------
    Decimal
        Exact decimal value. Floats convert through their shortest repr, so
        0.1 becomes Decimal("0.1") rather than its binary expansion.
        Unparseable text and signaling NaN become a quiet NaN, which the
        formatter reports as a ``nan`` part.

    Raises
    ------
    TypeError
        For bool (a subclass of int, almost always a bug here) and for
        objects that are neither numeric, textual nor float-convertible.

    Examples
    --------
    >>> std_decimal(0.1)
    Decimal('0.1')
    >>> std_decimal(" 1234.50 ")
    Decimal('1234.50')
    >>> std_decimal("1,234")
    Decimal('NaN')
    """
    if isinstance(value, bool):
        raise TypeError(f"boolean values not supported, got {value}")

    if isinstance(value, Decimal):
        return _NAN if value.is_snan() else value

    if isinstance(value, int):
        return Decimal(value)

    if isinstance(value, float):
        return Decimal(repr(value))

    if isinstance(value, Fraction):
        with localcontext() as ctx:
            ctx.prec = 34
            return Decimal(value.numerator) / Decimal(value.denominator)

    if isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return _NAN
        return _NAN if number.is_snan() else number

    # Duck typing via __float__ (numpy scalars and similar)
    if hasattr(value, "__float__"):
        try:
            return Decimal(repr(float(value)))
        except (TypeError, ValueError) as e:
            raise TypeError(f"cannot convert {fmt_type(value)} to float: {e}") from e

    raise TypeError(
        f"unsupported numeric type: {fmt_type(value)}. "
        f"Expected int, float, Decimal, Fraction, numeric str or types implementing __float__"
    )


def plain_number(value) -> int | float:
    """
    Coerce a value to a plain Python int or float.

    int and float inputs pass through unchanged. Anything else is normalized
    with std_decimal(); integral finite results become int (arbitrary
    precision), the rest become float, including NaN and infinities.

    Examples:
        >>> plain_number("42.0")
        42
        >>> plain_number(Decimal("2.5"))
        2.5
        >>> plain_number("abc")
        nan
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value

    number = std_decimal(value)
    if number.is_finite() and number == number.to_integral_value():
        return int(number)
    return float(number)
