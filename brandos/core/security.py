"""
Password hashing, random credential generation and safe identifiers
"""

import re
import secrets
import string
from functools import lru_cache

from passlib.context import CryptContext

from brandos.core.config import get_settings

ALPHANUMERIC = string.ascii_letters + string.digits
LOWER_ALPHANUMERIC = string.ascii_lowercase + string.digits
SPECIAL_CHARS = "!@#$%^&*()_+-=[]{}|;:,.<>?"

# PostgreSQL truncates identifiers longer than this
MAX_IDENTIFIER_LENGTH = 63

SAFE_IDENTIFIER_RE = re.compile(r"^[a-z][a-z0-9_]*$")


@lru_cache()
def get_password_context() -> CryptContext:
    """bcrypt context; rounds are configurable so tests stay fast"""
    settings = get_settings()
    return CryptContext(
        schemes=["bcrypt"],
        deprecated="auto",
        bcrypt__rounds=settings.PASSWORD_HASH_ROUNDS,
    )


def hash_password(password: str) -> str:
    return get_password_context().hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Constant-time comparison of a password against its stored hash"""
    return get_password_context().verify(password, password_hash)


def dummy_verify() -> None:
    """Burn the same time as a real verify when there is nothing to compare against"""
    get_password_context().dummy_verify()


def generate_random_chars(length: int, alphabet: str = ALPHANUMERIC) -> str:
    if length <= 0:
        raise ValueError("Length must be greater than 0")
    return "".join(secrets.choice(alphabet) for _ in range(length))


def generate_secure_password(length: int = 32) -> str:
    """Random password with at least one upper, lower, digit and symbol"""
    if length < 8:
        raise ValueError("Password length must be at least 8 characters")

    chars = [
        secrets.choice(string.ascii_uppercase),
        secrets.choice(string.ascii_lowercase),
        secrets.choice(string.digits),
        secrets.choice(SPECIAL_CHARS),
    ]
    chars.extend(generate_random_chars(length - 4, ALPHANUMERIC + SPECIAL_CHARS))

    # Fisher-Yates with a CSPRNG so the required classes are not positional
    for i in range(len(chars) - 1, 0, -1):
        j = secrets.randbelow(i + 1)
        chars[i], chars[j] = chars[j], chars[i]
    return "".join(chars)


def create_safe_identifier(value: str, prefix: str = "") -> str:
    """
    Turn arbitrary text into a lowercase identifier safe for schema/role names.

    Non [a-z0-9_] characters become underscores, runs of underscores collapse,
    and identifiers that would start with a digit get an ``n_`` prefix.
    """
    if not value or not value.strip():
        raise ValueError("Input cannot be empty")

    safe = re.sub(r"[^a-z0-9_]", "_", value.strip().lower())
    safe = re.sub(r"_{2,}", "_", safe).strip("_")
    if prefix:
        safe = f"{prefix}_{safe}" if safe else prefix
    if not safe:
        safe = "t"
    if safe[0].isdigit():
        safe = f"n_{safe}"
    return safe


def is_safe_identifier(value: str) -> bool:
    return bool(SAFE_IDENTIFIER_RE.match(value)) and len(value) <= MAX_IDENTIFIER_LENGTH


def validate_password_strength(password: str) -> None:
    """Principal passwords: 8+ chars with an upper, a lower and a digit"""
    if len(password) < 8:
        raise ValueError("Password must be at least 8 characters")
    if not any(c.isupper() for c in password):
        raise ValueError("Password must contain an uppercase letter")
    if not any(c.islower() for c in password):
        raise ValueError("Password must contain a lowercase letter")
    if not any(c.isdigit() for c in password):
        raise ValueError("Password must contain a digit")
