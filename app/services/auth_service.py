from datetime import datetime, timedelta, timezone
from enum import Enum
import os

import jwt

JWT_ALGORITHM = "HS256"
JWT_EXP_HOURS = 8


class Role(Enum):
    ADMIN = "ADMIN"
    MANAGER = "MANAGER"
    EMPLOYEE = "EMPLOYEE"


def _get_jwt_secret() -> str:
    secret = os.getenv("JWT_SECRET")
    if not secret:
        raise ValueError("JWT_SECRET is required")
    if len(secret) < 32:
        raise ValueError("JWT_SECRET must be at least 32 characters")
    return secret


def parse_role(value) -> Role:
    # missing role claim reads as MANAGER
    if not value:
        return Role.MANAGER
    try:
        return Role(str(value).strip().upper())
    except ValueError as exc:
        raise ValueError(f"Unknown role: {value}") from exc


def create_access_token(user_id: str, role: str = Role.ADMIN.value) -> str:
    if not str(user_id).strip():
        raise ValueError("user_id is required")

    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": parse_role(role).value,
        "iat": now,
        "exp": now + timedelta(hours=JWT_EXP_HOURS),
    }
    return jwt.encode(payload, _get_jwt_secret(), algorithm=JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, _get_jwt_secret(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError as exc:
        raise ValueError("Invalid or expired token") from exc

    if not payload.get("sub"):
        raise ValueError("Invalid token claims")

    return payload
