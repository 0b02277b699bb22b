from __future__ import annotations

import re
from typing import Any

import bcrypt

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")

_users: dict[str, dict[str, Any]] = {}


class RegistrationError(ValueError):
    """Raised when a sign-up request cannot be accepted."""


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def _public(username: str, record: dict[str, Any]) -> dict[str, Any]:
    return {"user_id": username, "username": username, "role": record["role"]}


def _seed_users() -> None:
    """Pre-seed demo accounts on import."""
    _users["reader"] = {"password_hash": _hash_password("reader123"), "role": "user"}
    _users["admin"] = {"password_hash": _hash_password("admin123"), "role": "admin"}


def register(username: str, password: str) -> dict[str, Any]:
    """Create a regular account. Returns the public user dict."""
    if not _USERNAME_RE.match(username):
        raise RegistrationError("Username must be 3-32 letters, digits, '.', '_' or '-'")
    if username in _users:
        raise RegistrationError("Username already taken")
    _users[username] = {"password_hash": _hash_password(password), "role": "user"}
    return _public(username, _users[username])


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{user_id, username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return _public(username, record)
    return None


_seed_users()
