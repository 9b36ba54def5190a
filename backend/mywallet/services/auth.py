import logging
import secrets
from typing import Any

from fastapi import Request
from passlib.hash import bcrypt

from mywallet.core.config import settings
from mywallet.core.errors import (
    AuthenticationError,
    ConflictError,
    DuplicateKeyError,
    NotFoundError,
    UnauthenticatedError,
    ValidationError,
)
from mywallet.db.store import SESSIONS, USERS, DocumentStore
from mywallet.models.schemas import LoginRequest, RegisterRequest, parse_payload

logger = logging.getLogger(__name__)

SENSITIVE_USER_FIELDS = ("password_hash", "password")


def hash_password(password: str) -> str:
    return bcrypt.using(rounds=settings.bcrypt_rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.verify(password, password_hash)
    except (TypeError, ValueError):
        return False


def new_session_token() -> str:
    return secrets.token_urlsafe(32)


def parse_bearer_token(req: Request) -> str | None:
    header = req.headers.get("authorization", "")
    parts = header.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def public_user(user: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in user.items() if k not in SENSITIVE_USER_FIELDS}


def check_password_rules(password: str) -> None:
    if len(password) < settings.password_min_len:
        raise ValidationError(f"Password too short (min {settings.password_min_len})")
    if len(password.encode("utf-8")) > 72:
        raise ValidationError("Password too long (max 72 bytes)")


def register_user(store: DocumentStore, data: Any) -> str:
    payload = parse_payload(RegisterRequest, data)
    check_password_rules(payload.password)
    if payload.confirm_password != payload.password:
        raise ValidationError("Passwords do not match")

    email = str(payload.email)
    # Fast path only; the unique index on users.email decides.
    if store.find_one(USERS, {"email": email}):
        logger.warning("registration rejected, email already in use")
        raise ConflictError("Email already registered")

    try:
        user_id = store.insert_one(
            USERS,
            {"name": payload.name, "email": email, "password_hash": hash_password(payload.password)},
        )
    except DuplicateKeyError:
        logger.warning("registration lost a race on a duplicate email")
        raise ConflictError("Email already registered")
    logger.info("registered user %s", user_id)
    return user_id


def login_user(store: DocumentStore, data: Any) -> str:
    payload = parse_payload(LoginRequest, data)
    user = store.find_one(USERS, {"email": str(payload.email)})
    if not user:
        raise NotFoundError("User not found")
    if not verify_password(payload.password, user.get("password_hash", "")):
        logger.warning("failed login for user %s", user["id"])
        raise AuthenticationError("Invalid credentials")

    token = new_session_token()
    store.insert_one(SESSIONS, {"token": token, "user_id": user["id"]})
    logger.info("opened session for user %s", user["id"])
    return token


def get_user_by_token(store: DocumentStore, token: str | None) -> dict[str, Any]:
    if not token:
        raise UnauthenticatedError()
    session = store.find_one(SESSIONS, {"token": token})
    if not session:
        raise UnauthenticatedError()
    user = store.find_one(USERS, {"id": session["user_id"]})
    if not user:
        raise UnauthenticatedError()
    return user


def require_bearer_user(req: Request, store: DocumentStore) -> dict[str, Any]:
    return get_user_by_token(store, parse_bearer_token(req))
