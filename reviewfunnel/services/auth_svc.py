"""
Admin credentials and stateless sessions.

Passwords are stored as bcrypt hashes; sessions are HS256 JWTs signed with
the server secret, valid for 24 hours, verified without any server-side
lookup.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Mapping, Optional

import bcrypt
import jwt

from ..db import QueryGateway
from ..errors import ValidationError
from ..repository import user_repo
from .utils import new_id, now_ms

logger = logging.getLogger(__name__)

SESSION_COOKIE = "admin_session"
SESSION_TTL = dt.timedelta(hours=24)
JWT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
BCRYPT_MAX_BYTES = 72


# -------- passwords --------

def hash_password(password: str) -> str:
    if not password:
        raise ValidationError("password is required")
    raw = password.encode("utf-8")
    if len(raw) > BCRYPT_MAX_BYTES:
        raise ValidationError(f"password longer than {BCRYPT_MAX_BYTES} bytes")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_credential(password: Optional[str], stored_hash: Optional[str]) -> bool:
    if not password or not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), stored_hash.encode("utf-8"))
    except ValueError:
        # malformed hash, or a password bcrypt refuses
        return False


# -------- users --------

def find_user_by_username(gw: QueryGateway, username: str) -> Optional[dict[str, Any]]:
    return user_repo.get_by_username(gw, username)


def create_user(gw: QueryGateway, username: str, password: str) -> bool:
    if not username or not username.strip():
        raise ValidationError("username is required")
    hashed = hash_password(password)
    ok = user_repo.insert(gw, new_id(), username.strip(), hashed, now_ms())
    if ok:
        logger.info("created user %s", username)
    else:
        logger.warning("failed to create user %s", username)
    return ok


def authenticate(gw: QueryGateway, username: str, password: str) -> Optional[dict[str, Any]]:
    user = find_user_by_username(gw, username)
    if not user or not verify_credential(password, user.get("password")):
        return None
    return user


# -------- sessions --------

def issue_session(claims: Mapping[str, Any], secret: str, now: Optional[dt.datetime] = None) -> str:
    iat = now or dt.datetime.now(dt.timezone.utc)
    payload = {
        "id": claims["id"],
        "username": claims["username"],
        "iat": iat,
        "exp": iat + SESSION_TTL,
    }
    return jwt.encode(payload, secret, algorithm=JWT_ALGORITHM)


def verify_session(token: Optional[str], secret: str) -> Optional[dict[str, Any]]:
    if not token:
        return None
    try:
        claims = jwt.decode(
            token,
            secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["exp", "iat"]},
        )
    except jwt.PyJWTError as e:
        logger.debug("session rejected: %s", e)
        return None
    if "id" not in claims or "username" not in claims:
        return None
    return claims
