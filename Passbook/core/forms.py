"""Validation of form input.

Every validator returns the cleaned value or raises
:class:`~Passbook.status.status.ValidationException` with the text to show
next to the form.
"""
import math
import re
from typing import Any, Dict, Tuple

from ..status import status

MAX_AMOUNT: float = 99999.99
MAX_DESCRIPTION_LENGTH: int = 100

MIN_CHILD_AGE: int = 1
MAX_CHILD_AGE: int = 25

PIN_RE = re.compile(r'^\d{4,6}$')
MONTH_KEY_RE = re.compile(r'^\d{4}-(0[1-9]|1[0-2])$')
EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def parse_amount(value: Any) -> float:
    """Parse a positive amount of at most 99,999.99, rounded to cents.

    Raises:
        status.ValidationException: If the amount is missing, not a number, or out of range.
    """
    if isinstance(value, bool):
        raise status.ValidationException('Please enter a valid amount')
    if isinstance(value, str):
        value = value.strip().replace(',', '')

    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise status.ValidationException('Please enter a valid amount')

    if math.isnan(amount) or math.isinf(amount):
        raise status.ValidationException('Please enter a valid amount')

    if amount <= 0:
        raise status.ValidationException('Please enter a valid amount')
    if amount > MAX_AMOUNT:
        raise status.ValidationException('Amount cannot exceed $99,999.99')

    # Less than a cent is not an amount
    amount = round(amount, 2)
    if not amount:
        raise status.ValidationException('Please enter a valid amount')
    return amount


def parse_description(value: Any) -> str:
    description = str(value if value is not None else '').strip()
    if not description:
        raise status.ValidationException('Please enter a description')
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise status.ValidationException(f'Description cannot exceed {MAX_DESCRIPTION_LENGTH} characters')
    return description


def validate_expense(amount: Any, description: Any) -> Tuple[float, str]:
    """Validate the expense form. The amount is checked first."""
    return parse_amount(amount), parse_description(description)


def validate_month_key(value: Any) -> str:
    """Validate a ``YYYY-MM`` month key."""
    month = (value or '').strip() if isinstance(value, str) else ''
    if not MONTH_KEY_RE.match(month):
        raise status.ValidationException('Please select a valid month')
    return month


def is_valid_pin(pin: str) -> bool:
    return bool(PIN_RE.match(pin or ''))


def validate_pin(pin: str) -> str:
    if not is_valid_pin(pin):
        raise status.ValidationException('PIN must be 4-6 digits')
    return pin


def validate_new_pin(current_pin: str, new_pin: str, confirm_pin: str) -> Tuple[str, str]:
    """Validate the change-PIN form.

    Returns:
        tuple: The current and the new PIN.
    """
    if not is_valid_pin(current_pin):
        raise status.ValidationException('Current PIN must be 4-6 digits')
    if not is_valid_pin(new_pin):
        raise status.ValidationException('New PIN must be 4-6 digits')
    if new_pin != confirm_pin:
        raise status.ValidationException('New PINs do not match')
    return current_pin, new_pin


def validate_login(email: str, password: str) -> Tuple[str, str]:
    email = (email or '').strip()
    if not EMAIL_RE.match(email):
        raise status.ValidationException('Please enter a valid email')
    if not password:
        raise status.ValidationException('Please enter your password')
    return email, password


def validate_family(family_name: str, currency: str) -> Tuple[str, str]:
    from .family import CURRENCIES

    family_name = (family_name or '').strip()
    if not family_name:
        raise status.ValidationException('Please enter a family name')
    if currency not in CURRENCIES:
        raise status.ValidationException(f'Currency must be one of {", ".join(CURRENCIES)}')
    return family_name, currency


def validate_child(display_name: str, age: Any, weekly_allowance: Any) -> Dict[str, Any]:
    """Validate the add-child form.

    Returns:
        dict: ``display_name``, ``age`` and ``weekly_allowance`` ready for the client.
    """
    display_name = (display_name or '').strip()
    if not display_name:
        raise status.ValidationException('Please enter a name')

    try:
        age = int(str(age).strip())
    except (TypeError, ValueError):
        raise status.ValidationException('Please enter a valid age')
    if not MIN_CHILD_AGE <= age <= MAX_CHILD_AGE:
        raise status.ValidationException(f'Age must be between {MIN_CHILD_AGE} and {MAX_CHILD_AGE}')

    try:
        weekly_allowance = float(str(weekly_allowance).strip())
    except (TypeError, ValueError):
        raise status.ValidationException('Please enter a valid allowance')
    if math.isnan(weekly_allowance) or math.isinf(weekly_allowance) or weekly_allowance < 0:
        raise status.ValidationException('Please enter a valid allowance')
    if weekly_allowance > MAX_AMOUNT:
        raise status.ValidationException('Amount cannot exceed $99,999.99')

    return {
        'display_name': display_name,
        'age': age,
        'weekly_allowance': round(weekly_allowance, 2),
    }


def validate_child_id(child_id: Any) -> str:
    child_id = str(child_id or '').strip()
    if not child_id:
        raise status.ValidationException('Please select a child')
    return child_id


def validate_category(category: str) -> str:
    from .family import CATEGORIES

    if category not in CATEGORIES:
        raise status.ValidationException('Please select a category')
    return category
