from __future__ import annotations

from typing import Any, Mapping, Optional

from ..db import QueryGateway
from ..errors import StorageError
from .rows import normalize_row

LINK_FIELDS = (
    "id",
    "slug",
    "businessName",
    "gmbReviewLink",
    "logoUrl",
    "backgroundImageUrl",
    "createdAt",
)

# id / createdAt are immutable and slug is never reassigned
UPDATABLE_FIELDS = ("businessName", "gmbReviewLink", "logoUrl", "backgroundImageUrl")

DDL = (
    """
    CREATE TABLE IF NOT EXISTS links (
        id TEXT PRIMARY KEY,
        slug TEXT NOT NULL UNIQUE,
        businessName TEXT NOT NULL,
        gmbReviewLink TEXT NOT NULL,
        logoUrl TEXT DEFAULT '',
        backgroundImageUrl TEXT DEFAULT '',
        createdAt TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_links_created ON links(createdAt)",
)


def ensure_schema(gw: QueryGateway):
    for stmt in DDL:
        if not gw.execute(stmt).success:
            raise StorageError("failed to create links table")


def _to_link(row: Mapping[str, Any]) -> dict[str, Any]:
    link = normalize_row(row, LINK_FIELDS)
    link["logoUrl"] = link["logoUrl"] or ""
    link["backgroundImageUrl"] = link["backgroundImageUrl"] or ""
    return link


def list_all(gw: QueryGateway) -> list[dict[str, Any]]:
    res = gw.execute("SELECT * FROM links ORDER BY createdAt DESC")
    if not res.success:
        raise StorageError("failed to list links")
    return [_to_link(r) for r in res.rows]


def get_by_slug(gw: QueryGateway, slug: str) -> Optional[dict[str, Any]]:
    res = gw.execute("SELECT * FROM links WHERE slug = ? LIMIT 1", [slug])
    if not res.success:
        raise StorageError("failed to read link")
    return _to_link(res.rows[0]) if res.rows else None


def get_by_id(gw: QueryGateway, link_id: str) -> Optional[dict[str, Any]]:
    res = gw.execute("SELECT * FROM links WHERE id = ? LIMIT 1", [link_id])
    if not res.success:
        raise StorageError("failed to read link")
    return _to_link(res.rows[0]) if res.rows else None


def insert(gw: QueryGateway, link: Mapping[str, Any]) -> dict[str, Any]:
    res = gw.execute(
        "INSERT INTO links (id, slug, businessName, gmbReviewLink, logoUrl, backgroundImageUrl, createdAt) "
        "VALUES (?, ?, ?, ?, ?, ?, ?)",
        [
            link["id"],
            link["slug"],
            link["businessName"],
            link["gmbReviewLink"],
            link.get("logoUrl") or "",
            link.get("backgroundImageUrl") or "",
            link["createdAt"],
        ],
    )
    if not res.success:
        raise StorageError("failed to insert link")
    return dict(link)


def update(gw: QueryGateway, link_id: str, fields: Mapping[str, Any]) -> bool:
    """
    Update the whitelisted columns of one link.

    Returns False without touching the store when nothing updatable was
    given, and False when no row matched.
    """
    cols = [f for f in UPDATABLE_FIELDS if f in fields]
    if not cols:
        return False
    set_clause = ", ".join(f"{c} = ?" for c in cols)
    params = [fields[c] if fields[c] is not None else "" for c in cols] + [link_id]
    res = gw.execute(f"UPDATE links SET {set_clause} WHERE id = ?", params)
    return res.success and res.rows_affected > 0


def delete(gw: QueryGateway, link_id: str) -> bool:
    res = gw.execute("DELETE FROM links WHERE id = ?", [link_id])
    return res.success and res.rows_affected > 0
