"""Shared validation utilities"""

import re
from typing import Optional


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


def validate_student_id(student_id: str) -> str:
    """Trim a student number; letters, digits and dashes only"""
    student_id = student_id.strip()
    if not re.match(r"^[A-Za-z0-9-]{3,50}$", student_id):
        raise ValueError("Student ID must be 3-50 letters, digits or dashes")
    return student_id
