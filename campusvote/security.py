from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import JWTError, jwt
from passlib.context import CryptContext

from campusvote.config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ALGORITHM,
    REFRESH_SECRET_KEY,
    REFRESH_TOKEN_EXPIRE_MINUTES,
    SECRET_KEY,
)
from campusvote.errors import Unauthorized

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# Hash a password
def hash_password(password: str) -> str:
    return pwd_context.hash(password)


# Verify a plain password against a hash
def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _encode(user_id: str, token_type: str, secret: str, expires_minutes: int) -> str:
    now = datetime.now(timezone.utc)
    to_encode = {
        "sub": user_id,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": now + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(to_encode, secret, algorithm=ALGORITHM)


# Create JWT access token
def create_access_token(user_id: str, expires_minutes: int = ACCESS_TOKEN_EXPIRE_MINUTES) -> str:
    return _encode(user_id, "access", SECRET_KEY, expires_minutes)


# Create JWT refresh token
def create_refresh_token(user_id: str, expires_minutes: int = REFRESH_TOKEN_EXPIRE_MINUTES) -> str:
    return _encode(user_id, "refresh", REFRESH_SECRET_KEY, expires_minutes)


def decode_token(token: str, expected_type: str = "access") -> Dict[str, Any]:
    """Decode and verify a token; raises Unauthorized on any failure."""
    secret = SECRET_KEY if expected_type == "access" else REFRESH_SECRET_KEY
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid token or authentication failure")
    if payload.get("type") != expected_type or not payload.get("sub"):
        raise Unauthorized("Invalid token or authentication failure")
    return payload
