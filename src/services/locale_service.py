"""Centralized locale service for money and date formatting.

Single source of truth for everything the portals display as text.
Uses babel with the locale from settings.

Configuration:
    LOCALE (default: en_US) - number and date formatting
    CURRENCY_SYMBOL (default: $) - prefix for money amounts

Example:
    >>> from src.services.locale_service import format_amount, due_label
    >>> format_amount(1200)
    '$1,200'
    >>> format_amount(-100)
    '$-100'
    >>> due_label(1)
    '1st of each month'
"""

import calendar
import logging
from datetime import date
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.numbers import format_decimal as babel_format_decimal

from src.services.config import get_settings

logger = logging.getLogger(__name__)

# Fallback if LOCALE is invalid
DEFAULT_LOCALE = "en_US"

WHOLE_PATTERN = "#,##0"
CENTS_PATTERN = "#,##0.00"


def _get_locale() -> str:
    """Get locale from settings with validation and fallback.

    Returns:
        Valid locale string (e.g., 'en_US')
    """
    locale_str = get_settings().locale
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


def get_currency_symbol() -> str:
    """Currency prefix for money amounts (e.g., '$')."""
    return get_settings().currency_symbol


def format_amount(amount: float | int | Decimal | None, include_symbol: bool = True) -> str:
    """Format a money amount.

    Whole amounts drop the cents; anything else shows two digits.
    The sign stays after the symbol.

    Example:
        >>> format_amount(1200)
        '$1,200'
        >>> format_amount(Decimal("99.5"))
        '$99.50'
        >>> format_amount(-100)
        '$-100'
    """
    value = Decimal(str(amount or 0))
    pattern = WHOLE_PATTERN if value == value.to_integral_value() else CENTS_PATTERN
    text = babel_format_decimal(value, format=pattern, locale=_get_locale())
    if include_symbol:
        return f"{get_currency_symbol()}{text}"
    return text


def format_signed_amount(amount: float | int | Decimal, sign: str) -> str:
    """Sign prefix followed by the formatted absolute value ('+$1,200')."""
    return f"{sign}{format_amount(abs(Decimal(str(amount))))}"


def format_short_date(value: date | None) -> str:
    """Format a date as M/d/yyyy; empty string when missing."""
    if value is None:
        return ""
    return babel_format_date(value, format="M/d/yyyy", locale=_get_locale())


def ordinal(number: int) -> str:
    """English ordinal for a day of the month ('1st', '22nd', '13th')."""
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def due_label(due_day: int | None) -> str:
    """Human label for a lease due day."""
    if not due_day:
        return "Due date not set"
    return f"{ordinal(due_day)} of each month"


def _clamped(year: int, month: int, day: int) -> date:
    return date(year, month, min(day, calendar.monthrange(year, month)[1]))


def add_months(start: date, months: int) -> date:
    """Same day `months` later, clamped to the target month's length."""
    index = start.month - 1 + months
    return _clamped(start.year + index // 12, index % 12 + 1, start.day)


def next_due_date(due_day: int, today: date | None = None) -> date:
    """Next month's due date.

    Due days past the end of a short month fall on its last day
    (due day 31 in February is Feb 28/29).
    """
    today = today or date.today()
    following = add_months(today.replace(day=1), 1)
    return _clamped(following.year, following.month, due_day)


def contract_end_date(start: date | None, months: int | None = None) -> date:
    """End of the contract shown to renters (CONTRACT_LENGTH_MONTHS after start)."""
    if months is None:
        months = get_settings().contract_length_months
    return add_months(start or date.today(), months)


__all__ = [
    "get_currency_symbol",
    "format_amount",
    "format_signed_amount",
    "format_short_date",
    "ordinal",
    "due_label",
    "add_months",
    "next_due_date",
    "contract_end_date",
]
