"""
Module for formatting currency values, month keys and timestamps using Babel.

"""
import datetime
import logging
from typing import List, Optional, Union

from babel import Locale, UnknownLocaleError, numbers
from babel.dates import format_date, format_datetime, format_time

CURRENCIES: List[str] = [
    'USD',
    'EUR',
    'GBP',
    'INR',
]

LOCALE_MAP: List[str] = [
    'en_GB',
    'en_US',
    'en_IN',
    'de_DE',
    'fr_FR',
    'es_ES',
    'it_IT',
    'nl_NL',
    'hu_HU',
]


def _metadata(key: str, value: Optional[str]) -> str:
    if value:
        return value
    from . import lib
    return lib.settings[key]


def format_float(value: float, locale: Optional[str] = None) -> str:
    """
    Format a float as a decimal string according to the locale conventions.

    Args:
        value (float): The numeric value to be formatted.
        locale (str, optional): Locale string, e.g. 'en_US'. Defaults to the configured locale.

    Returns:
        str: The formatted decimal string.
    """
    locale = _metadata('locale', locale)
    try:
        return numbers.format_decimal(value, locale=Locale.parse(locale))
    except (ValueError, TypeError, UnknownLocaleError) as ex:
        logging.debug(f'Error formatting decimal: {ex}')
        return str(value)


def format_currency_value(value: Union[float, int, None], currency: Optional[str] = None,
                          locale: Optional[str] = None) -> str:
    """
    Format a number as a currency string, e.g. ``$1,234.56``.

    Args:
        value (float): The amount to format. ``None`` is treated as zero.
        currency (str, optional): ISO currency code. Defaults to the configured currency.
        locale (str, optional): Locale string. Defaults to the configured locale.

    Returns:
        str: The formatted currency string.
    """
    currency = _metadata('currency', currency)
    locale = _metadata('locale', locale)
    value = value or 0.0
    try:
        return numbers.format_currency(value, currency=currency, locale=Locale.parse(locale))
    except (ValueError, TypeError, UnknownLocaleError) as ex:
        logging.error(f'Error formatting currency: {ex}')
        return f'{value:.2f}'


def parse_timestamp(value: Union[str, int, float, datetime.datetime]) -> datetime.datetime:
    """Convert an ISO-8601 string or unix seconds into a local, naive datetime.

    Raises:
        ValueError: If the value cannot be parsed.
    """
    if isinstance(value, datetime.datetime):
        dt = value
    elif isinstance(value, (int, float)):
        return datetime.datetime.fromtimestamp(value)
    elif isinstance(value, str):
        dt = datetime.datetime.fromisoformat(value.replace('Z', '+00:00'))
    else:
        raise ValueError(f'Unsupported timestamp: {value!r}')

    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt


def format_timestamp(value: Union[str, int, float, datetime.datetime], locale: Optional[str] = None) -> str:
    """Format a timestamp as a short month, day and time, e.g. ``Mar 5, 2:07 PM``.

    Unparseable values are returned as given.
    """
    locale = _metadata('locale', locale)
    try:
        dt = parse_timestamp(value)
    except ValueError:
        logging.debug(f'Could not parse timestamp: {value!r}')
        return str(value)
    return format_datetime(dt, 'MMM d, h:mm a', locale=locale)


def format_day(value: Union[str, int, float, datetime.datetime], locale: Optional[str] = None) -> str:
    """Format a timestamp as a short date."""
    locale = _metadata('locale', locale)
    try:
        dt = parse_timestamp(value)
    except ValueError:
        logging.debug(f'Could not parse date: {value!r}')
        return str(value)
    return format_date(dt.date(), format='short', locale=locale)


def format_lock_time(locked_until: Union[int, float], locale: Optional[str] = None) -> str:
    """Format a unix timestamp as a local time of day, e.g. ``2:45:10 PM``."""
    locale = _metadata('locale', locale)
    return format_time(datetime.datetime.fromtimestamp(locked_until), format='medium', locale=locale)


def format_month_name(month_key: str, locale: Optional[str] = None) -> str:
    """Convert a ``YYYY-MM`` key to a display name, e.g. ``March 2025``.

    Raises:
        ValueError: If the month key is malformed.
    """
    locale = _metadata('locale', locale)
    year, month = month_key.split('-')
    date = datetime.date(int(year), int(month), 1)
    return format_date(date, 'LLLL yyyy', locale=locale)


def get_current_month_key(today: Optional[datetime.date] = None) -> str:
    """Returns the ``YYYY-MM`` key of the current month."""
    today = today or datetime.date.today()
    return f'{today.year:04d}-{today.month:02d}'
