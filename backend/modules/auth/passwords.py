"""
Password hashing.

bcrypt with a per-hash random salt; the cost factor never drops below 10.
"""

import re

import bcrypt

MIN_BCRYPT_ROUNDS = 10

# bcrypt only ever reads the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = MIN_BCRYPT_ROUNDS) -> str:
    """Hash a plaintext password and return the bcrypt string."""
    salt = bcrypt.gensalt(rounds=max(rounds, MIN_BCRYPT_ROUNDS))
    return bcrypt.hashpw(_encode(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Compare a candidate password against a stored hash.

    Returns False for accounts without a password and for hashes bcrypt
    cannot parse, so callers never have to special-case either.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
    except ValueError:
        return False


PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128
_SPECIAL_CHARS = re.compile(r"""[!@#$%^&*()_+\-=\[\]{};':"\\|,.<>/?]""")


def validate_password_policy(password: str) -> str:
    """
    Enforce the password policy for newly chosen passwords.

    8-128 characters with at least one upper-case letter, lower-case letter,
    digit and special character, and no spaces.

    Raises:
        ValueError: Naming the first rule the password breaks
    """
    if len(password) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must not exceed {PASSWORD_MAX_LENGTH} characters")
    if not re.search(r"[A-Z]", password):
        raise ValueError("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        raise ValueError("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        raise ValueError("Password must contain at least one number")
    if not _SPECIAL_CHARS.search(password):
        raise ValueError("Password must contain at least one special character")
    if " " in password:
        raise ValueError("Password cannot contain spaces")
    return password
