"""Shared validation utilities"""

import re
from typing import Iterable, Optional


def validate_us_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize US phone number to E.164 format.

    Args:
        phone: Phone number string in various formats, e.g. "(555) 123-4567"

    Returns:
        Normalized phone number in E.164 format (+1XXXXXXXXXX)

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +1 prefix
    if digits.startswith("1") and len(digits) == 11:
        digits = digits[1:]

    if len(digits) != 10:
        raise ValueError("Phone number must be 10 digits for US numbers")

    return f"+1{digits}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase, stripped email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_zip_code(zip_code: Optional[str]) -> Optional[str]:
    """Accept 5-digit or ZIP+4 US codes"""
    if not zip_code:
        return zip_code
    zip_code = zip_code.strip()
    if not re.match(r"^\d{5}(-\d{4})?$", zip_code):
        raise ValueError("ZIP code must be 5 digits (or ZIP+4)")
    return zip_code


def validate_ein(ein: Optional[str]) -> Optional[str]:
    """Normalize an Employer Identification Number to XX-XXXXXXX"""
    if not ein:
        return ein
    digits = re.sub(r"\D", "", ein)
    if len(digits) != 9:
        raise ValueError("EIN must be 9 digits (e.g. 12-3456789)")
    return f"{digits[:2]}-{digits[2:]}"


def validate_digits(value: Optional[str], label: str, min_len: int, max_len: int) -> Optional[str]:
    """Strip spaces/dashes from bank numbers and check their length"""
    if not value:
        return value
    digits = re.sub(r"[\s-]", "", value)
    if not digits.isdigit() or not (min_len <= len(digits) <= max_len):
        raise ValueError(f"{label} must be {min_len}-{max_len} digits")
    return digits


def unique_in_order(values: Iterable[str]) -> list[str]:
    """Deduplicate while keeping first-seen order (selection sets keep their click order)"""
    seen = set()
    result = []
    for value in values:
        if value not in seen:
            seen.add(value)
            result.append(value)
    return result
