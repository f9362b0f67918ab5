"""
Security utilities: password hashing, JWT issuance and webhook signatures
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from jose import JWTError
from jose import jwt as jose_jwt
from passlib.context import CryptContext

from .config import JWT_ALGORITHM, JWT_EXPIRES_DELTA, JWT_SECRET

logger = logging.getLogger(__name__)

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ============================================================================
# PASSWORD SECURITY
# ============================================================================


def hash_password(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# JWT
# ============================================================================


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a signed JWT token

    Args:
        data: Claims to encode in the token
        expires_delta: Token lifetime (defaults to JWT_EXPIRES_IN)
    """
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or JWT_EXPIRES_DELTA)
    # jti makes every issued token unique
    to_encode.update({"exp": expire, "iat": datetime.utcnow(), "jti": secrets.token_hex(8)})
    return jose_jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def verify_jwt_token(token: str) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


def get_token_expiry(payload: dict[str, Any]) -> datetime:
    """Expiry of a decoded token as a naive UTC datetime"""
    exp = payload.get("exp")
    if exp is None:
        return datetime.utcnow() + JWT_EXPIRES_DELTA
    return datetime.utcfromtimestamp(int(exp))


def create_customer_token(customer) -> str:
    return create_jwt_token({"id": customer.id, "email": customer.email, "name": customer.name})


def create_admin_token(admin) -> str:
    return create_jwt_token(
        {
            "id": admin.id,
            "email": admin.email,
            "name": admin.name,
            "username": admin.username,
            "role": admin.role,
            "branch_id": admin.branch_id,
            "permissions": admin.permissions,
            "is_admin": True,
        }
    )


# ============================================================================
# SIGNATURES
# ============================================================================


def compute_hmac_sha256(secret: str, payload: bytes) -> str:
    """Compute HMAC-SHA256 signature of payload as hex"""
    return hmac.new(secret.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings in constant time"""
    if not a or not b:
        return False
    return hmac.compare_digest(a, b)
