"""Password hashing and credential format checks for local accounts."""

import re

import bcrypt

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6

_ALPHANUMERIC = re.compile(r"^[a-zA-Z0-9]+$")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash.

    Args:
        plain_password: The plain text password to verify
        hashed_password: The bcrypt hash to verify against

    Returns:
        True if password matches, False otherwise
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Not a bcrypt hash
        return False


def hash_password(password: str) -> str:
    """Hash a password using bcrypt.

    Args:
        password: The plain text password to hash

    Returns:
        The bcrypt hash of the password
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
    return hashed.decode("utf-8")


def validate_password_format(password: str) -> tuple[bool, str | None]:
    """Validate password meets format requirements.

    Requirements:
    - At least 6 characters
    - Letters and digits only
    - At least one letter and one digit

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        return False, f"Password must be at least {PASSWORD_MIN_LENGTH} characters"

    if not _ALPHANUMERIC.match(password):
        return False, "Password must contain only letters and numbers"

    if not re.search(r"[a-zA-Z]", password):
        return False, "Password must contain at least one letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one number"

    return True, None


def validate_name(name: str) -> tuple[bool, str | None]:
    """Validate a display/login name after trimming whitespace."""
    stripped = name.strip()
    if len(stripped) < NAME_MIN_LENGTH:
        return False, f"Name must be at least {NAME_MIN_LENGTH} characters"
    if len(stripped) > NAME_MAX_LENGTH:
        return False, f"Name must be at most {NAME_MAX_LENGTH} characters"
    return True, None
