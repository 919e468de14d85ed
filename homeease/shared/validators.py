"""Shared validation utilities"""

import re
from typing import Optional

PINCODE_PATTERN = re.compile(r"^\d{6}$")
INDIAN_MOBILE_PATTERN = re.compile(r"^[6-9]\d{9}$")


def validate_indian_phone(phone: Optional[str]) -> Optional[str]:
    """
    Validate and normalize an Indian mobile number to its 10 digit form.

    Args:
        phone: Phone number string, optionally with +91 / 0 prefix and separators

    Returns:
        The 10 digit mobile number

    Raises:
        ValueError: If phone number is invalid
    """
    if not phone:
        return phone

    # Remove all non-digit characters
    digits = re.sub(r"\D", "", phone)

    # Handle +91 and trunk 0 prefixes
    if digits.startswith("91") and len(digits) == 12:
        digits = digits[2:]
    elif digits.startswith("0") and len(digits) == 11:
        digits = digits[1:]

    if not INDIAN_MOBILE_PATTERN.match(digits):
        raise ValueError("Please enter a valid Indian mobile number")

    return digits


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Args:
        email: Email address string

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()

    # Basic email validation pattern
    email_pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"

    if not re.match(email_pattern, email):
        raise ValueError("Invalid email format")

    return email


def validate_pincode(pincode: str) -> str:
    """Validate a 6 digit Indian postal code"""
    pincode = (pincode or "").strip()
    if not PINCODE_PATTERN.match(pincode):
        raise ValueError("Please enter a valid 6 digit pincode")
    return pincode
