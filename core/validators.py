"""
Validators and input parsers shared by models, serializers and services.
"""

import re
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.utils import timezone

# Largest value a BigAutoField primary key can hold
MAX_OBJECT_ID = 9223372036854775807

MIN_STARS = 1
MAX_STARS = 5


def parse_object_id(value):
    """
    Parse a client supplied object identifier.

    Accepts positive integers and strings of decimal digits. Booleans, floats,
    signed or padded-with-garbage strings are rejected.

    Args:
        value: Raw identifier from the request body or URL

    Returns:
        int or None: The identifier, or None if it is malformed
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        number = value
    elif isinstance(value, str):
        text = value.strip()
        if not text.isdigit() or not text.isascii():
            return None
        number = int(text)
    else:
        return None

    if number < 1 or number > MAX_OBJECT_ID:
        return None
    return number


def parse_star_rating(value):
    """
    Parse a star rating into an integer between 1 and 5.

    Integral floats and numeric strings such as ``4.0`` or ``"4"`` are
    accepted. Fractions, booleans and anything non-numeric are not.

    Returns:
        int or None: The rating, or None if it is not a valid star value
    """
    if isinstance(value, bool):
        return None

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not value.is_integer():
            return None
        number = int(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            return None
        if not parsed.is_finite() or parsed != parsed.to_integral_value():
            return None
        number = int(parsed)
    else:
        return None

    if number < MIN_STARS or number > MAX_STARS:
        return None
    return number


def validate_isbn(value):
    """
    Validate ISBN format.

    Accepts ISBN-10 and ISBN-13 written with optional hyphens or spaces.
    An empty value is allowed because the field is optional.

    Raises:
        ValidationError: If the ISBN format is invalid
    """
    if not value:
        return

    if not re.match(r'^[\dXx\-\s]+$', value):
        raise ValidationError(
            'ISBN can only contain digits, hyphens, spaces and a trailing X.',
            code='invalid_isbn_chars'
        )

    compact = re.sub(r'[\-\s]', '', value)
    if len(compact) not in (10, 13):
        raise ValidationError(
            'ISBN must contain 10 or 13 characters.',
            code='invalid_isbn_length'
        )

    if not compact[:-1].isdigit() or not (compact[-1].isdigit() or (len(compact) == 10 and compact[-1] in 'Xx')):
        raise ValidationError(
            'ISBN must be numeric, with X allowed only as the last ISBN-10 character.',
            code='invalid_isbn_format'
        )


def validate_publication_year(value):
    """
    Validate that a publication year lies between 1000 and the current year.

    Raises:
        ValidationError: If the year is out of range
    """
    if value is None:
        return

    current_year = timezone.now().year
    if value < 1000 or value > current_year:
        raise ValidationError(
            f'Publication year must be between 1000 and {current_year}.',
            code='invalid_publication_year'
        )


def normalize_isbn(value):
    """Strip hyphens and spaces so ISBNs compare equal regardless of formatting."""
    if not value:
        return ''
    return re.sub(r'[\-\s]', '', value).upper()


def text_length(value):
    """
    Length of ``value`` in UTF-16 code units.

    Client-side counters measure text this way, so a character outside the
    Basic Multilingual Plane (most emoji) counts as two.
    """
    return len(value.encode('utf-16-le')) // 2
