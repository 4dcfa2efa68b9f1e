# inventory_admin/core/security.py
import hashlib
import re
import secrets
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from email_validator import EmailNotValidError, validate_email
from jose import jwt
from passlib.context import CryptContext

from inventory_admin.core.clock import utc_now
from inventory_admin.core.config import settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PASSWORD_MIN_LENGTH = 8
PASSWORD_RULE_MESSAGE = (
    f"Password must be at least {PASSWORD_MIN_LENGTH} characters long "
    "and include at least one letter and one number"
)


class AuthNotConfiguredError(RuntimeError):
    """Raised when a token has to be signed but JWT_SECRET is missing."""


def hash_password(plain_password: str) -> str:
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except ValueError:
        # unrecognised / corrupted hash in the store
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    if not email:
        return False
    try:
        validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def check_password_strength(password: str) -> Optional[str]:
    """Return the violated rule as a message, or None when the password is acceptable."""
    if (
        len(password) < PASSWORD_MIN_LENGTH
        or not re.search(r"[A-Za-z]", password)
        or not re.search(r"\d", password)
    ):
        return PASSWORD_RULE_MESSAGE
    return None


def generate_reset_token() -> str:
    # 32 random bytes -> 64 hex chars
    return secrets.token_hex(32)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def create_access_token(
    admin_id: str,
    email: str,
    expires_delta: Optional[timedelta] = None,
    secret: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Create a JWT token with 'id' (admin id) and 'email' in payload.
    Raises AuthNotConfiguredError when no signing secret is available.
    """
    secret = secret if secret is not None else settings.JWT_SECRET
    if not secret:
        raise AuthNotConfiguredError("JWT_SECRET not configured")

    now = now or utc_now()
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = now + expires_delta
    to_encode: Dict[str, Any] = {
        "id": admin_id,
        "email": email,
        "iat": int(_epoch(now)),
        "exp": int(_epoch(expire)),
    }
    return jwt.encode(to_encode, secret, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    """
    Decode JWT and return payload. Raises jose.ExpiredSignatureError for expired
    tokens and jose.JWTError for anything else that fails verification.
    """
    secret = secret if secret is not None else settings.JWT_SECRET
    return jwt.decode(token, secret, algorithms=[settings.JWT_ALGORITHM])


def _epoch(dt: datetime) -> float:
    # naive values are UTC throughout the service
    return (dt - datetime(1970, 1, 1)).total_seconds()
