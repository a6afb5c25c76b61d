"""
Input validators, used by the services before touching the store.
"""

import re

from storefront import config

_EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+(\.[a-zA-Z0-9-]+)+$")
MAX_PASSWORD_BYTES = 72


def validate_email(email: str) -> bool:
    """Basic email format check."""
    return bool(email) and bool(_EMAIL_PATTERN.match(email.strip()))


def validate_password(password: str) -> bool:
    """
    Password rules: minimum length, at least one letter, not a single
    repeated character. bcrypt only reads the first 72 bytes, so anything
    longer is refused rather than silently cut.
    """
    if not password or len(password) < config.MIN_PASSWORD_LENGTH:
        return False
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return False
    if not any(c.isalpha() for c in password):
        return False
    return len(set(password)) > 1
