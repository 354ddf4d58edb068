"""Email/password accounts and the signed-in user kept in the Streamlit session state."""

from __future__ import annotations

import logging
import re
import sqlite3
from datetime import datetime, timezone
from typing import MutableMapping

from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError
from .models import User

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_PASSWORD_LENGTH = 6
SESSION_USER_KEY = "user"


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def validate_credentials(email: str, password: str) -> str:
    email = normalize_email(email)
    if not email or not password:
        raise AuthError("Please fill in all fields")
    if not EMAIL_RE.match(email):
        raise AuthError("Please enter a valid email address")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise AuthError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return email


def sign_up(conn: sqlite3.Connection, email: str, password: str) -> User:
    email = validate_credentials(email, password)
    created_at = datetime.now(timezone.utc).isoformat()
    try:
        cur = conn.execute(
            "INSERT INTO users (email, password_hash, created_at) VALUES (?, ?, ?)",
            (email, generate_password_hash(password), created_at),
        )
    except sqlite3.IntegrityError as exc:
        raise AuthError("An account with this email already exists") from exc
    conn.commit()
    logger.info("Created account %s", cur.lastrowid)
    return User(id=int(cur.lastrowid), email=email, created_at=created_at)


def sign_in(conn: sqlite3.Connection, email: str, password: str) -> User:
    email = normalize_email(email)
    if not email or not password:
        raise AuthError("Please fill in all fields")
    row = conn.execute(
        "SELECT id, email, password_hash, created_at FROM users WHERE email = ?",
        (email,),
    ).fetchone()
    if row is None or not check_password_hash(row[2], password):
        raise AuthError("Invalid email or password")
    return User(id=int(row[0]), email=str(row[1]), created_at=str(row[3]))


def _state(state: MutableMapping | None) -> MutableMapping:
    if state is not None:
        return state
    import streamlit as st

    return st.session_state


def remember(user: User, state: MutableMapping | None = None) -> None:
    _state(state)[SESSION_USER_KEY] = user


def current_user(state: MutableMapping | None = None) -> User | None:
    user = _state(state).get(SESSION_USER_KEY)
    return user if isinstance(user, User) else None


def sign_out(state: MutableMapping | None = None) -> None:
    _state(state).pop(SESSION_USER_KEY, None)
