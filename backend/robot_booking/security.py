# backend/robot_booking/security.py
import hashlib
import re
from datetime import datetime, timedelta
from typing import Optional, Dict, Any

from passlib.context import CryptContext
import jwt  # PyJWT

from .config import JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_MINUTES, RESET_TOKEN_EXPIRES_MINUTES

RESET_PURPOSE = "password_reset"
PASSWORD_MIN_LENGTH = 6

# Use pbkdf2_sha256 to avoid bcrypt native/72-byte issues in some environments
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# --- password helpers ---
def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def password_is_strong(plain: str) -> bool:
    # uppercase, lowercase, digit, non-alphanumeric, min length
    return (
        len(plain) >= PASSWORD_MIN_LENGTH
        and re.search(r"[A-Z]", plain) is not None
        and re.search(r"[a-z]", plain) is not None
        and re.search(r"\d", plain) is not None
        and re.search(r"[^A-Za-z0-9]", plain) is not None
    )

# --- jwt helpers ---
def _encode(data: Dict[str, Any], expires_minutes: int) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    to_encode.update({"exp": now + timedelta(minutes=expires_minutes), "iat": now})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)

def create_access_token(data: Dict[str, Any], expires_minutes: Optional[int] = None) -> str:
    return _encode(data, expires_minutes or JWT_EXPIRES_MINUTES)

def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None
    if payload.get("purpose"):
        # reset tokens are not access tokens
        return None
    return payload

# --- password reset tokens ---
def _fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]

def create_reset_token(user_id: str, password_hash: str, expires_minutes: Optional[int] = None) -> str:
    # bound to the current hash so the token dies once the password changes
    return _encode(
        {"sub": user_id, "purpose": RESET_PURPOSE, "fp": _fingerprint(password_hash)},
        expires_minutes or RESET_TOKEN_EXPIRES_MINUTES,
    )

def reset_token_is_valid(token: str, user_id: str, password_hash: str) -> bool:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return False
    return (
        payload.get("purpose") == RESET_PURPOSE
        and payload.get("sub") == user_id
        and payload.get("fp") == _fingerprint(password_hash)
    )
