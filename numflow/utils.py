"""
Numflow utilities shared across the package.

Contains the small formatting helpers used to build exception messages,
kept here to avoid circular imports.
"""

# Standard library -----------------------------------------------------------------------------------------------------
import reprlib
from typing import Any

_repr = reprlib.Repr()
_repr.maxstring = 60
_repr.maxother = 60


# Methods --------------------------------------------------------------------------------------------------------------


def class_name(obj: Any) -> str:
    """
    Get the class name of an object or a class.

    Both `class_name(10)` and `class_name(int)` return 'int'.
    """
    cls = obj if isinstance(obj, type) else obj.__class__
    return cls.__name__


def fmt_type(obj: Any) -> str:
    """
    Format type information for exception messages.

    Examples:
        >>> fmt_type(42)
        '<int>'
        >>> fmt_type(ValueError)
        '<ValueError>'
    """
    return f"<{class_name(obj)}>"


def fmt_value(obj: Any) -> str:
    """
    Format a value as a type-value pair for exception messages.

    Long reprs are truncated, so the helper is safe for arbitrary user input.

    Examples:
        >>> fmt_value(42)
        '<int: 42>'
        >>> fmt_value("compact")
        "<str: 'compact'>"
    """
    try:
        value_repr = _repr.repr(obj)
    except Exception:
        value_repr = "..."
    return f"<{class_name(obj)}: {value_repr}>"
