"""National ID checksum and registration field validation."""

import re
from datetime import datetime
from typing import Optional

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?90?[0-9]{10}$")
MIN_AGE = 13
MAX_AGE = 120
MIN_PASSWORD_LENGTH = 6


def validate_turkish_id_format(identity_number: Optional[str]) -> bool:
    """Validate a T.C. Kimlik No.

    11 digits, first digit non-zero. With d1..d11 the digits:
    d10 == (7 * (d1+d3+d5+d7+d9) - (d2+d4+d6+d8)) mod 10
    d11 == (d1 + ... + d10) mod 10
    """
    if not identity_number or len(identity_number) != 11:
        return False
    if not identity_number.isascii() or not identity_number.isdigit():
        return False
    if identity_number[0] == "0":
        return False

    digits = [int(c) for c in identity_number]
    odd_sum = sum(digits[0:9:2])
    even_sum = sum(digits[1:8:2])
    if digits[9] != (odd_sum * 7 - even_sum) % 10:
        return False
    return digits[10] == sum(digits[:10]) % 10


def normalize_phone(phone_number: str) -> str:
    """Canonical ``+90XXXXXXXXXX`` form for any accepted spelling; other input is only stripped."""
    compact = re.sub(r"\s", "", phone_number or "")
    if PHONE_RE.match(compact):
        return f"+90{compact[-10:]}"
    return compact


def validate_user_data(
    first_name: str,
    last_name: str,
    email: str,
    phone_number: str,
    year_of_birth: int,
    password: Optional[str] = None,
    identity_number: Optional[str] = None,
    current_year: Optional[int] = None,
) -> list[str]:
    """Return field-level error messages; empty when the data is acceptable."""
    errors = []

    if not first_name or len(first_name.strip()) < 2:
        errors.append("First name must be at least 2 characters")
    if not last_name or len(last_name.strip()) < 2:
        errors.append("Last name must be at least 2 characters")
    if not email or not EMAIL_RE.match(email):
        errors.append("Valid email address is required")
    if not phone_number or not PHONE_RE.match(normalize_phone(phone_number)):
        errors.append("Valid Turkish phone number is required")

    year = current_year or datetime.now().year
    age = year - year_of_birth
    if age < MIN_AGE or age > MAX_AGE:
        errors.append(f"Age must be between {MIN_AGE} and {MAX_AGE} years")

    if password is not None and len(password) < MIN_PASSWORD_LENGTH:
        errors.append(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    if identity_number and not validate_turkish_id_format(identity_number):
        errors.append("Invalid Turkish identity number format")

    return errors
