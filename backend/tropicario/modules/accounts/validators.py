"""
Field rules shared by the account request schemas.

Each function returns the cleaned value or raises ValueError with the
message shown to the client.
"""

import re

USERNAME_PATTERN = re.compile(r"^[\w-]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]")


def check_username(value: str) -> str:
    value = value.strip()
    if not 2 <= len(value) <= 55:
        raise ValueError("Username must be between 2 and 55 characters long")
    if not USERNAME_PATTERN.match(value):
        raise ValueError("Username can only contain letters, numbers, underscores and hyphens")
    return value


def check_password(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    if not PASSWORD_PATTERN.match(value):
        raise ValueError(
            "Password must contain at least one uppercase letter, one lowercase letter, "
            "one number and one special character (@$!%*?&)"
        )
    return value


def normalize_email(value: str) -> str:
    return value.strip().lower()
