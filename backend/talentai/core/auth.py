# backend/talentai/core/auth.py
"""
Accounts for the recruiter side of the API.

- hash_password() / verify_password(): bcrypt, cost from BCRYPT_ROUNDS
- issue_token() / decode_token(): HS256 JWT carrying the user id, email and type
- register_user() / login(): the two account operations, against any Store
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import bcrypt
import jwt

from .config import (
    BCRYPT_ROUNDS,
    JWT_ALGORITHM,
    MIN_PASSWORD_LENGTH,
    TOKEN_TTL_HOURS,
    get_jwt_secret,
)
from .errors import AuthenticationFailed, InvalidToken, ValidationFailed
from .utils import now_utc

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72


# --- passwords ---------------------------------------------------------------

def check_password(password: str) -> None:
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationFailed(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("ascii")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw((password or "").encode("utf-8"), hashed.encode("ascii"))
    except ValueError:
        # malformed hash or over-long password
        return False


# --- tokens --------------------------------------------------------------------

def issue_token(user: Dict[str, Any], secret: Optional[str] = None, ttl_hours: int = TOKEN_TTL_HOURS) -> str:
    issued = now_utc()
    claims = {
        "sub": str(user["id"]),
        "email": user["email"],
        "user_type": user["user_type"],
        "iat": issued,
        "exp": issued + timedelta(hours=ttl_hours),
    }
    return jwt.encode(claims, secret or get_jwt_secret(), algorithm=JWT_ALGORITHM)


def decode_token(token: str, secret: Optional[str] = None) -> Dict[str, Any]:
    try:
        claims = jwt.decode(token, secret or get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError as e:
        raise InvalidToken("Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidToken("Invalid or expired token") from e
    if not str(claims.get("sub", "")).isdigit():
        raise InvalidToken("Invalid or expired token")
    return claims


# --- account operations -----------------------------------------------------

def public_user(user: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in user.items() if k != "password_hash"}


def register_user(store: Any, data: Dict[str, Any]) -> Tuple[Dict[str, Any], str]:
    """
    `data` holds name, email (already normalised), password, user_type and optional company.
    Duplicate emails raise ValidationFailed from the store.
    """
    check_password(data["password"])
    user = store.create_user({
        "name": data["name"],
        "email": data["email"],
        "password_hash": hash_password(data["password"]),
        "user_type": data["user_type"],
        "company": data.get("company") if data["user_type"] == "recruiter" else None,
    })
    logger.info("Registered %s account %s", user["user_type"], user["id"])
    return public_user(user), issue_token(user)


def login(store: Any, email: str, password: str) -> Tuple[Dict[str, Any], str]:
    user = store.get_user_by_email(email)
    if user is None or not verify_password(password, user["password_hash"]):
        raise AuthenticationFailed("Invalid email or password")
    return public_user(user), issue_token(user)


__all__ = [
    "check_password",
    "hash_password",
    "verify_password",
    "issue_token",
    "decode_token",
    "public_user",
    "register_user",
    "login",
]
