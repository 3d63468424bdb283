"""
Locale-aware number formatting into ordered, typed substrings.

`NumberFormatter` renders a number the way CLDR locale data prescribes and
returns the result as a list of `FormatPart` items (integer digits, group
separators, decimal point, fraction digits, signs, currency, unit, compact
and literal text) that concatenate back to the full formatted string.

Locale data (patterns, symbols, currency and unit names) comes from Babel.
Scientific and engineering notation are not supported: exponent parts have no
place in the keyed part model built on top of this module.
"""

# ## Coverage
#
# Supported: decimal, percent, currency (symbol, code, name) and unit styles,
# grouping, sign display modes, fraction and integer digit bounds, compact
# short/long notation.
#
# Not supported: minimum grouping digits (es: "1.000" is grouped here),
# native digits of non-Latin numbering systems, rounding increments.

# Standard library -----------------------------------------------------------------------------------------------------
import collections.abc as abc
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import StrEnum, unique
from typing import Any, Literal, NamedTuple, Protocol, Sequence, runtime_checkable

# Third-party ----------------------------------------------------------------------------------------------------------
from babel import Locale, UnknownLocaleError
from babel.numbers import (
    NumberPattern,
    format_decimal,
    get_currency_name,
    get_currency_precision,
    get_currency_symbol,
    get_currency_unit_pattern,
    parse_pattern,
)
from babel.units import format_unit

# Local ----------------------------------------------------------------------------------------------------------------
from .numeric import std_decimal
from .utils import fmt_type, fmt_value

logger = logging.getLogger(__name__)


# @formatter:off

class FormatConf:
    """
    Default configuration constants for NumberFormat.

    Attributes:
        DEFAULT_LOCALE: Locale used when NumberFormat.locale is None.

        FRACTION_DIGITS: Default (minimum, maximum) fraction digits per style.
            Currency style is absent here: it uses the ISO 4217 minor unit
            precision of the currency (2 for USD, 0 for JPY).

        MAX_FRACTION_DIGITS: Upper bound for fraction digit options.

        MAX_INTEGER_DIGITS: Upper bound for minimum_integer_digits.

        COMPACT_SIGNIFICANT_DIGITS: Significant digits kept by compact notation
            when no fraction digit options are given. Integer digits are never
            dropped, so 123_456 is "123K" and not "120K".
    """

    DEFAULT_LOCALE = "en_US"

    FRACTION_DIGITS = {
        "decimal": (0, 3),
        "percent": (0, 0),
        "unit": (0, 3),
    }

    MAX_FRACTION_DIGITS = 100
    MAX_INTEGER_DIGITS = 21

    COMPACT_SIGNIFICANT_DIGITS = 2

# @formatter:on

# Classes --------------------------------------------------------------------------------------------------------------

# @formatter:off
@unique
class PartType(StrEnum):
    """
    Types of formatted number parts.

    MINUS_SIGN and PLUS_SIGN are what the formatter emits; SIGN is the merged
    category used by keyed parts. PREFIX and SUFFIX are caller-supplied affixes
    added outside the locale-formatted body.
    """
    INTEGER = "integer"
    FRACTION = "fraction"
    GROUP = "group"
    DECIMAL = "decimal"
    MINUS_SIGN = "minusSign"
    PLUS_SIGN = "plusSign"
    SIGN = "sign"
    PERCENT_SIGN = "percentSign"
    CURRENCY = "currency"
    UNIT = "unit"
    COMPACT = "compact"
    LITERAL = "literal"
    NAN = "nan"
    INFINITY = "infinity"
    PREFIX = "prefix"
    SUFFIX = "suffix"
# @formatter:on


class FormatPart(NamedTuple):
    """One typed substring of a formatted number."""
    type: PartType
    value: str


@runtime_checkable
class PartsFormatter(Protocol):
    """Protocol for anything that formats a number into ordered typed parts."""

    def format_to_parts(self, value: Any) -> list[FormatPart]: ...


Style = Literal["decimal", "percent", "currency", "unit"]
SignDisplay = Literal["auto", "always", "except_zero", "negative", "never"]


@dataclass(frozen=True)
class NumberFormat:
    """
    Number formatting options.

    Attributes:
        locale: Locale identifier ("en_US" or "en-US"), a babel Locale, or a
            sequence of identifiers tried in order. None means FormatConf.DEFAULT_LOCALE.
        style: "decimal", "percent" (value is multiplied by 100), "currency" or "unit".
        currency: ISO 4217 code, required for the currency style.
        currency_display: "symbol" ($), "code" (USD) or "name" (US dollars).
        unit: CLDR unit identifier ("kilometer", "length-kilometer", "kilometer-per-hour"),
            required for the unit style.
        unit_display: "short" (km), "long" (kilometers) or "narrow" (km, tighter spacing).
        use_grouping: Whether to insert group separators.
        minimum_integer_digits: Integer part is zero-padded to this many digits.
        minimum_fraction_digits: Minimum fraction digits, None for the style default.
        maximum_fraction_digits: Maximum fraction digits, None for the style default.
        sign_display: "auto" (minus for negatives), "always", "except_zero",
            "negative" (minus for negatives that do not round to zero) or "never".
        notation: "standard" or "compact". Scientific and engineering
            notation are rejected.
        compact_display: "short" (1.2K) or "long" (1.2 thousand).

    Examples:
        >>> NumberFormat(style="currency", currency="EUR", locale="de-DE")
        >>> NumberFormat(notation="compact", compact_display="long")

    Raises:
        ValueError: If an option value is not supported or options conflict.
        TypeError: If an option has the wrong type.
    """
    locale: str | Locale | Sequence[str] | None = None
    style: Style = "decimal"
    currency: str | None = None
    currency_display: Literal["symbol", "code", "name"] = "symbol"
    unit: str | None = None
    unit_display: Literal["short", "long", "narrow"] = "short"
    use_grouping: bool = True
    minimum_integer_digits: int = 1
    minimum_fraction_digits: int | None = None
    maximum_fraction_digits: int | None = None
    sign_display: SignDisplay = "auto"
    notation: Literal["standard", "compact"] = "standard"
    compact_display: Literal["short", "long"] = "short"

    def __post_init__(self):
        """Validate and normalize fields"""

        if not isinstance(self.locale, (str, Locale, type(None))):
            if not isinstance(self.locale, abc.Sequence):
                raise TypeError(f"locale must be a str, Locale or sequence of str, "
                                f"but found {fmt_type(self.locale)}")
            object.__setattr__(self, 'locale', tuple(self.locale))

        if self.style not in ("decimal", "percent", "currency", "unit"):
            raise ValueError(f"style expected one of 'decimal', 'percent', 'currency', 'unit' "
                             f"but found {fmt_value(self.style)}")

        if self.style == "currency":
            if not isinstance(self.currency, str) or not re.fullmatch(r"[A-Za-z]{3}", self.currency):
                raise ValueError(f"currency style requires a 3-letter ISO 4217 currency code "
                                 f"but found {fmt_value(self.currency)}")
            object.__setattr__(self, 'currency', self.currency.upper())

        if self.currency_display not in ("symbol", "code", "name"):
            raise ValueError(f"currency_display expected one of 'symbol', 'code', 'name' "
                             f"but found {fmt_value(self.currency_display)}")

        if self.style == "unit" and not (isinstance(self.unit, str) and self.unit):
            raise ValueError(f"unit style requires a unit identifier but found {fmt_value(self.unit)}")

        if self.unit_display not in ("short", "long", "narrow"):
            raise ValueError(f"unit_display expected one of 'short', 'long', 'narrow' "
                             f"but found {fmt_value(self.unit_display)}")

        if not isinstance(self.use_grouping, bool):
            raise TypeError(f"use_grouping must be bool, but found {fmt_type(self.use_grouping)}")

        if self.sign_display not in ("auto", "always", "except_zero", "negative", "never"):
            raise ValueError(f"sign_display expected one of 'auto', 'always', 'except_zero', 'negative', 'never' "
                             f"but found {fmt_value(self.sign_display)}")

        if self.notation in ("scientific", "engineering"):
            raise ValueError(f"{self.notation} notation is not supported, exponent parts cannot be keyed")
        if self.notation not in ("standard", "compact"):
            raise ValueError(f"notation expected one of 'standard', 'compact' "
                             f"but found {fmt_value(self.notation)}")

        if self.compact_display not in ("short", "long"):
            raise ValueError(f"compact_display expected one of 'short', 'long' "
                             f"but found {fmt_value(self.compact_display)}")

        _validate_digits("minimum_integer_digits", self.minimum_integer_digits,
                         low=1, high=FormatConf.MAX_INTEGER_DIGITS)
        for name in ("minimum_fraction_digits", "maximum_fraction_digits"):
            if getattr(self, name) is not None:
                _validate_digits(name, getattr(self, name), low=0, high=FormatConf.MAX_FRACTION_DIGITS)

        if (self.minimum_fraction_digits is not None and self.maximum_fraction_digits is not None
                and self.minimum_fraction_digits > self.maximum_fraction_digits):
            raise ValueError(f"minimum_fraction_digits {self.minimum_fraction_digits} exceeds "
                             f"maximum_fraction_digits {self.maximum_fraction_digits}")


class NumberFormatter:
    """
    Formats numbers into ordered typed parts for one NumberFormat.

    Locale data is resolved once on construction, so a formatter can be
    reused for every value rendered with the same options.

    Examples:
        >>> NumberFormatter(locale="en_US").format(1234.5)
        '1,234.5'
        >>> NumberFormatter(style="percent").format_to_parts(0.25)
        [FormatPart(type=<PartType.INTEGER: 'integer'>, value='25'),
         FormatPart(type=<PartType.PERCENT_SIGN: 'percentSign'>, value='%')]

    Raises:
        babel.UnknownLocaleError: If no locale identifier resolves.
    """

    def __init__(self, fmt: NumberFormat | None = None, **options):
        if fmt is not None and options:
            raise ValueError("pass either a NumberFormat or keyword options, not both")
        if fmt is None:
            fmt = NumberFormat(**options)
        if not isinstance(fmt, NumberFormat):
            raise TypeError(f"fmt must be a NumberFormat, but found {fmt_type(fmt)}")

        self.format_options = fmt
        self.locale = _resolve_locale(fmt.locale)
        self._symbols = self.locale.number_symbols["latn"]

        by_name = fmt.style == "currency" and fmt.currency_display == "name"
        if fmt.style == "currency" and not by_name:
            self._pattern: NumberPattern = parse_pattern(self.locale.currency_formats["standard"])
        elif fmt.style == "percent":
            self._pattern = parse_pattern(self.locale.percent_formats[None])
        else:
            self._pattern = parse_pattern(self.locale.decimal_formats[None])

        # Compact currency patterns carry the currency symbol themselves
        self._compact_formats = None
        self._compact_pattern = self._pattern
        if fmt.notation == "compact":
            if fmt.style == "currency" and not by_name:
                formats = self.locale.compact_currency_formats
                self._compact_pattern = parse_pattern(self.locale.decimal_formats[None])
            else:
                formats = self.locale.compact_decimal_formats
            self._compact_formats = formats.get(fmt.compact_display) or formats["short"]

        self._min_frac, self._max_frac = self._fraction_digits()

    def __repr__(self) -> str:
        return f"NumberFormatter(locale={str(self.locale)!r}, style={self.format_options.style!r})"

    def format(self, value) -> str:
        """Format value to a string."""
        return "".join(part.value for part in self.format_to_parts(value))

    def format_to_parts(self, value) -> list[FormatPart]:
        """
        Format value into ordered typed parts covering the whole formatted text.

        NaN (including unparseable text) yields a single ``nan`` part and infinite
        values yield an ``infinity`` part with the usual sign and affixes. Neither
        raises.

        Raises:
            TypeError: If value is not numeric, see numflow.numeric.std_decimal.
        """
        fmt = self.format_options
        number = std_decimal(value)
        if number.is_nan():
            return [FormatPart(PartType.NAN, self._symbols["nan"])]

        magnitude = abs(number)
        if fmt.style == "percent":
            magnitude = magnitude.scaleb(2)

        compact = None
        if number.is_infinite():
            body = [FormatPart(PartType.INFINITY, self._symbols["infinity"])]
            is_zero = False
            count = Decimal(0)
        else:
            threshold = None
            if self._compact_formats is not None:
                integer_digits, fraction_digits, threshold = self._compact_digits(magnitude)
            else:
                integer_digits, fraction_digits = self._digits(magnitude)
            body = self._body(integer_digits, fraction_digits)
            is_zero = not (integer_digits.strip("0") or fraction_digits.strip("0"))
            # Plural forms follow the displayed digits, "1.0" is not "one" in every locale
            count = _digits_decimal(integer_digits, fraction_digits)
            if threshold is not None:
                compact = self._compact_affixes(threshold, count)

        sign = self._sign(number.is_signed(), is_zero)
        pattern = self._pattern if compact is None else self._compact_pattern
        prefix, suffix = self._signed_affixes(pattern, sign)

        if compact is not None:
            body = [*self._affix_parts(compact.prefix[0], PartType.COMPACT),
                    *body,
                    *self._affix_parts(compact.suffix[0], PartType.COMPACT)]

        parts = [*prefix, *body, *suffix]
        if fmt.style == "unit":
            parts = self._wrap_unit(parts, count)
        elif fmt.style == "currency" and fmt.currency_display == "name":
            parts = self._wrap_currency_name(parts, count)

        return _merge_literals(parts)

    # Private Methods ------------------------------------------------------------------------------

    def _fraction_digits(self) -> tuple[int, int | None]:
        """Resolve (minimum, maximum) fraction digits, maximum None means compact rounding."""
        fmt = self.format_options
        min_frac, max_frac = fmt.minimum_fraction_digits, fmt.maximum_fraction_digits

        if fmt.notation == "compact" and min_frac is None and max_frac is None:
            return 0, None

        if fmt.style == "currency":
            precision = get_currency_precision(fmt.currency)
            default_min, default_max = precision, precision
        else:
            default_min, default_max = FormatConf.FRACTION_DIGITS[fmt.style]

        if min_frac is None:
            min_frac = default_min if max_frac is None else min(default_min, max_frac)
        if max_frac is None:
            max_frac = max(default_max, min_frac)
        return min_frac, max_frac

    def _compact_scale(self, magnitude: Decimal) -> tuple[str | None, int]:
        """Find the largest applicable compact threshold and its divisor, (None, 1) if uncompacted."""
        formats = self._compact_formats
        for threshold in sorted((int(m) for m in formats["other"]), reverse=True):
            if magnitude < threshold:
                continue
            pattern = parse_pattern(formats["other"][str(threshold)])
            if _is_uncompacted(pattern):
                return None, 1
            return str(threshold), threshold // 10 ** (pattern.pattern.count("0") - 1)
        return None, 1

    def _compact_digits(self, magnitude: Decimal) -> tuple[str, str, str | None]:
        """Scale and round magnitude for compact notation, return the digits and the threshold used."""
        threshold, divisor = self._compact_scale(magnitude)
        integer_digits, fraction_digits = self._digits(magnitude / divisor if divisor > 1 else magnitude)

        # Rounding may carry into the next threshold, 999_999 is 1M and not 1000K
        rounded = _digits_decimal(integer_digits, fraction_digits) * divisor
        if rounded > magnitude:
            next_threshold, next_divisor = self._compact_scale(rounded)
            if next_divisor != divisor:
                integer_digits, fraction_digits = self._digits(magnitude / next_divisor)
            threshold = next_threshold
        return integer_digits, fraction_digits, threshold

    def _compact_affixes(self, threshold: str, count: Decimal) -> NumberPattern:
        """Pick the compact pattern of a threshold for the plural form of the displayed count."""
        formats = self._compact_formats
        plural_form = self.locale.plural_form(count)
        if plural_form not in formats:
            plural_form = "other"
        if count == 1 and "1" in formats:
            plural_form = "1"
        return parse_pattern(formats[plural_form].get(threshold) or formats["other"][threshold])

    def _digits(self, magnitude: Decimal) -> tuple[str, str]:
        """Round magnitude and return its (integer, fraction) digit strings."""
        min_frac, max_frac = self._min_frac, self._max_frac
        if max_frac is None:
            significant = FormatConf.COMPACT_SIGNIFICANT_DIGITS
            max_frac = max(0, significant - 1 - magnitude.adjusted()) if magnitude else 0

        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, magnitude.adjusted() + max_frac + 2)
            rounded = magnitude.quantize(Decimal(1).scaleb(-max_frac), rounding=ROUND_HALF_UP)

        integer_digits, _, fraction_digits = format(rounded, "f").partition(".")
        fraction_digits = fraction_digits[:min_frac] + fraction_digits[min_frac:].rstrip("0")
        integer_digits = integer_digits.lstrip("0").zfill(self.format_options.minimum_integer_digits)
        return integer_digits, fraction_digits

    def _body(self, integer_digits: str, fraction_digits: str) -> list[FormatPart]:
        parts = []
        for i, chunk in enumerate(self._group(integer_digits)):
            if i:
                parts.append(FormatPart(PartType.GROUP, self._symbols["group"]))
            parts.append(FormatPart(PartType.INTEGER, chunk))
        if fraction_digits:
            parts.append(FormatPart(PartType.DECIMAL, self._symbols["decimal"]))
            parts.append(FormatPart(PartType.FRACTION, fraction_digits))
        return parts

    def _group(self, digits: str) -> list[str]:
        """Split integer digits into groups, most significant first."""
        primary, secondary = self._pattern.grouping
        if not self.format_options.use_grouping or len(digits) <= primary:
            return [digits]
        chunks = [digits[-primary:]]
        rest = digits[:-primary]
        while len(rest) > secondary:
            chunks.append(rest[-secondary:])
            rest = rest[:-secondary]
        chunks.append(rest)
        return chunks[::-1]

    def _sign(self, negative: bool, is_zero: bool) -> PartType | None:
        mode = self.format_options.sign_display
        if mode == "never":
            return None
        if mode == "auto":
            return PartType.MINUS_SIGN if negative else None
        if mode == "negative":
            return PartType.MINUS_SIGN if negative and not is_zero else None
        if mode == "except_zero" and is_zero:
            return None
        return PartType.MINUS_SIGN if negative else PartType.PLUS_SIGN

    def _signed_affixes(self, pattern: NumberPattern, sign: PartType | None) -> tuple[list, list]:
        """Tokenize pattern prefix and suffix for the sign, negative subpattern for any sign."""
        index = 0 if sign is None else 1
        prefix = self._affix_parts(pattern.prefix[index], PartType.LITERAL)
        suffix = self._affix_parts(pattern.suffix[index], PartType.LITERAL)
        if sign is PartType.PLUS_SIGN:
            plus = FormatPart(PartType.PLUS_SIGN, self._symbols["plusSign"])
            prefix = [plus if p.type is PartType.MINUS_SIGN else p for p in prefix]
            suffix = [plus if p.type is PartType.MINUS_SIGN else p for p in suffix]

        # Currency codes are separated from the digits
        if self.format_options.currency_display == "code":
            if prefix and prefix[-1].type is PartType.CURRENCY:
                prefix.append(FormatPart(PartType.LITERAL, "\xa0"))
            if suffix and suffix[0].type is PartType.CURRENCY:
                suffix.insert(0, FormatPart(PartType.LITERAL, "\xa0"))
        return prefix, suffix

    def _affix_parts(self, affix: str, text_type: PartType) -> list[FormatPart]:
        """
        Tokenize a CLDR pattern affix.

        Quoted and plain text become text_type parts, whitespace becomes literal,
        and the special characters - + % ‰ ¤ are replaced by locale symbols.
        """
        parts = []
        for match in _AFFIX_RE.finditer(affix):
            quoted, currency, space, symbol, text = match.groups()
            if quoted is not None:
                parts.append(FormatPart(text_type, quoted or "'"))
            elif currency:
                parts.append(FormatPart(PartType.CURRENCY, self._currency_text(len(currency))))
            elif space:
                parts.append(FormatPart(PartType.LITERAL, space))
            elif symbol == "-":
                parts.append(FormatPart(PartType.MINUS_SIGN, self._symbols["minusSign"]))
            elif symbol == "+":
                parts.append(FormatPart(PartType.PLUS_SIGN, self._symbols["plusSign"]))
            elif symbol == "%":
                parts.append(FormatPart(PartType.PERCENT_SIGN, self._symbols["percentSign"]))
            elif symbol == "‰":
                parts.append(FormatPart(PartType.PERCENT_SIGN, self._symbols["perMille"]))
            else:
                parts.append(FormatPart(text_type, text))
        return parts

    def _currency_text(self, width: int) -> str:
        fmt = self.format_options
        if width == 1 and fmt.currency_display == "symbol":
            return get_currency_symbol(fmt.currency, locale=self.locale)
        if width == 3:
            return get_currency_name(fmt.currency, locale=self.locale)
        return fmt.currency

    def _wrap_unit(self, parts: list[FormatPart], count: Decimal) -> list[FormatPart]:
        """Place parts into the locale's plural unit pattern."""
        fmt = self.format_options
        full = format_unit(count, fmt.unit, length=fmt.unit_display, locale=self.locale)
        number = format_decimal(count, locale=self.locale)
        before, found, after = full.partition(number)
        if not found:
            raise ValueError(f"cannot locate the number in unit pattern {fmt_value(full)} "
                             f"for unit {fmt_value(fmt.unit)}")
        return [*_split_text(before, PartType.UNIT), *parts, *_split_text(after, PartType.UNIT)]

    def _wrap_currency_name(self, parts: list[FormatPart], count: Decimal) -> list[FormatPart]:
        """Place parts into the locale's currency unit pattern, e.g. '{0} {1}'."""
        currency = self.format_options.currency
        pattern = get_currency_unit_pattern(currency, count=count, locale=self.locale)
        wrapped = []
        for token in re.split(r"(\{[01]\})", pattern):
            if token == "{0}":
                wrapped.extend(parts)
            elif token == "{1}":
                name = get_currency_name(currency, count=count, locale=self.locale)
                wrapped.append(FormatPart(PartType.CURRENCY, name))
            elif token:
                wrapped.extend(_split_text(token, PartType.LITERAL))
        return wrapped


# Methods --------------------------------------------------------------------------------------------------------------

_AFFIX_RE = re.compile(r"'([^']*)'|(¤{1,3})|(\s+)|([-+%‰])|([^'¤\s\-+%‰]+)")


def _validate_digits(name: str, value: Any, *, low: int, high: int):
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be int, but found {fmt_type(value)}")
    if not low <= value <= high:
        raise ValueError(f"{name} must be in range [{low}, {high}], but found {fmt_value(value)}")


def _resolve_locale(locale: str | Locale | Sequence[str] | None) -> Locale:
    """
    Resolve the first parsable locale identifier.

    Raises the error of the last candidate when none resolves.
    """
    if isinstance(locale, Locale):
        return locale
    if locale is None:
        candidates = [FormatConf.DEFAULT_LOCALE]
    elif isinstance(locale, str):
        candidates = [locale]
    else:
        candidates = list(locale) or [FormatConf.DEFAULT_LOCALE]

    error = None
    for candidate in candidates:
        if isinstance(candidate, Locale):
            return candidate
        if not isinstance(candidate, str):
            raise TypeError(f"locale identifier must be str, but found {fmt_type(candidate)}")
        try:
            return Locale.parse(candidate.replace("-", "_"))
        except (UnknownLocaleError, ValueError) as e:
            logger.debug("locale %r not available: %s", candidate, e)
            error = e
    raise error


def _digits_decimal(integer_digits: str, fraction_digits: str) -> Decimal:
    return Decimal(f"{integer_digits}.{fraction_digits}" if fraction_digits else integer_digits)


def _is_uncompacted(pattern: NumberPattern) -> bool:
    """True for compact patterns like '0' or '¤0' that keep the full number."""
    return pattern.pattern.replace("¤", "").strip("\xa0 ") == "0"


def _split_text(text: str, text_type: PartType) -> list[FormatPart]:
    """Split text into whitespace literal parts and text_type parts."""
    parts = []
    for space, other in re.findall(r"(\s+)|(\S+)", text):
        if space:
            parts.append(FormatPart(PartType.LITERAL, space))
        else:
            parts.append(FormatPart(text_type, other))
    return parts


def _merge_literals(parts: list[FormatPart]) -> list[FormatPart]:
    merged: list[FormatPart] = []
    for part in parts:
        if merged and part.type is PartType.LITERAL and merged[-1].type is PartType.LITERAL:
            merged[-1] = FormatPart(PartType.LITERAL, merged[-1].value + part.value)
        else:
            merged.append(part)
    return merged
