"""Password hashing, refresh-token fingerprints and credential validation rules."""

import hashlib
import hmac
import re

import bcrypt

from app.core.config import settings

# Min/max lengths for credential validation.
NAME_MAX_LEN = 255
PHONE_MAX_LEN = 32
PASSWORD_MIN_LEN = 8
PASSWORD_MAX_LEN = 128

PASSWORD_SPECIAL_CHARS = "@$!%*?&#^-_."
_PASSWORD_RULES = (
    (re.compile(r"[a-z]"), "one lowercase letter"),
    (re.compile(r"[A-Z]"), "one uppercase letter"),
    (re.compile(r"\d"), "one number"),
    (re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARS) + "]"), "one special character"),
)


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password for storage. Do not store plain passwords."""
    # bcrypt has a 72-byte limit; truncate to avoid errors (validation already limits length).
    pw_bytes = plain_password.encode("utf-8")[:72]
    salt = bcrypt.gensalt(rounds=rounds or settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(pw_bytes, salt).decode("utf-8")


def verify_password(plain_password: str, hashed: str) -> bool:
    """Verify a plain password against a stored hash."""
    pw_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(pw_bytes, hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def fingerprint_token(token: str) -> str:
    """SHA-256 hex digest of a refresh token; only this digest is ever persisted."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def fingerprints_match(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def normalize_email(email: str) -> str:
    """Emails are unique case-insensitively; store and look them up in this form."""
    return email.strip().lower()


def password_strength_errors(password: str) -> list[str]:
    """Return the unmet password rules (empty list when the password is acceptable)."""
    missing = []
    if not (PASSWORD_MIN_LEN <= len(password) <= PASSWORD_MAX_LEN):
        missing.append(f"{PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters")
    for pattern, rule in _PASSWORD_RULES:
        if not pattern.search(password):
            missing.append(rule)
    return missing
