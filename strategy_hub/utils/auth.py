# strategy_hub/utils/auth.py
"""
Credential utilities: bcrypt password hashing and one-time tokens for
e-mail verification and password reset.
Passwords are NEVER stored in plain text - only bcrypt hashes.
"""
import secrets
from datetime import datetime, timedelta, timezone

import bcrypt

EMAIL_VERIFICATION_TTL = timedelta(hours=24)
PASSWORD_RESET_TTL = timedelta(hours=1)


def hash_password(password: str) -> str:
    """
    Hash a password using bcrypt.
    Returns the hashed password string (bcrypt hash).
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.
    Returns True if password matches, False otherwise (including malformed hashes).
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode('utf-8'), hashed_password.encode('utf-8'))
    except ValueError:
        return False

def generate_token() -> str:
    """64 hex chars of URL-safe randomness."""
    return secrets.token_hex(32)

def token_expiry(ttl: timedelta) -> datetime:
    return datetime.now(timezone.utc) + ttl
