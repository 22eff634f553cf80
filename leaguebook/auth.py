"""
Admin flag: one admin password, exchanged for a signed token.
There are no user accounts; a valid token simply means "admin".
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt
from passlib.context import CryptContext

from leaguebook.config import Settings, settings as default_settings

# pbkdf2_sha256 avoids the bcrypt backend self-test
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ALGORITHM = "HS256"
ADMIN_SUBJECT = "admin"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(plain, hashed)


def check_admin_password(plain: str, cfg: Settings | None = None) -> bool:
    """Compare against ADMIN_PASSWORD_HASH, or a hash of ADMIN_PASSWORD when only that is set."""
    cfg = cfg or default_settings
    hashed = cfg.admin_password_hash
    if not hashed and cfg.admin_password:
        hashed = hash_password(cfg.admin_password)
    return verify_password(plain, hashed)


def create_admin_token(cfg: Settings | None = None) -> str:
    cfg = cfg or default_settings
    expire = datetime.now(timezone.utc) + timedelta(minutes=cfg.access_token_expire_minutes)
    to_encode = {"sub": ADMIN_SUBJECT, "exp": expire}
    return jwt.encode(to_encode, cfg.jwt_secret_key, algorithm=ALGORITHM)


def is_admin_token(token: str, cfg: Settings | None = None) -> bool:
    cfg = cfg or default_settings
    try:
        payload = jwt.decode(token, cfg.jwt_secret_key, algorithms=[ALGORITHM])
    except JWTError:
        return False
    return payload.get("sub") == ADMIN_SUBJECT
