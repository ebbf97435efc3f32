from __future__ import annotations

from typing import Any, Mapping

from ..db import QueryGateway
from ..errors import StorageError

FEEDBACK_FIELDS = ("id", "linkId", "name", "email", "comment", "rating", "createdAt")

# linkId 不加外键：链接删除后历史反馈仍保留
DDL = (
    """
    CREATE TABLE IF NOT EXISTS feedback (
        id TEXT PRIMARY KEY,
        linkId TEXT NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        comment TEXT NOT NULL,
        rating INTEGER NOT NULL,
        createdAt TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_feedback_link ON feedback(linkId)",
)


def ensure_schema(gw: QueryGateway):
    for stmt in DDL:
        if not gw.execute(stmt).success:
            raise StorageError("failed to create feedback table")


def insert(gw: QueryGateway, feedback: Mapping[str, Any]) -> dict[str, Any]:
    res = gw.execute(
        "INSERT INTO feedback (id, linkId, name, email, comment, rating, createdAt) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [feedback[f] for f in FEEDBACK_FIELDS],
    )
    if not res.success:
        raise StorageError("failed to insert feedback")
    return dict(feedback)
