from __future__ import annotations

from typing import Any, Optional

from ..db import QueryGateway
from ..errors import StorageError
from .rows import normalize_row

USER_FIELDS = ("id", "username", "password", "created_at")

DDL = (
    """
    CREATE TABLE IF NOT EXISTS users (
        id TEXT PRIMARY KEY,
        username TEXT UNIQUE,
        password TEXT,
        created_at INTEGER
    )
    """,
)


def ensure_schema(gw: QueryGateway):
    for stmt in DDL:
        if not gw.execute(stmt).success:
            raise StorageError("failed to create users table")


def get_by_username(gw: QueryGateway, username: str) -> Optional[dict[str, Any]]:
    res = gw.execute("SELECT * FROM users WHERE username = ? LIMIT 1", [username])
    if not res.success:
        raise StorageError("failed to read user")
    return normalize_row(res.rows[0], USER_FIELDS) if res.rows else None


def insert(gw: QueryGateway, user_id: str, username: str, password_hash: str, created_at: int) -> bool:
    res = gw.execute(
        "INSERT INTO users (id, username, password, created_at) VALUES (?, ?, ?, ?)",
        [user_id, username, password_hash, created_at],
    )
    return res.success
