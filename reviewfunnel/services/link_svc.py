from __future__ import annotations

from typing import Any, Mapping, Optional

from ..db import QueryGateway
from ..errors import NotFoundError, ValidationError
from ..logs import LogContext
from ..repository import link_repo
from .utils import new_id, new_slug, now_iso, require_fields


def list_links(gw: QueryGateway) -> list[dict[str, Any]]:
    return link_repo.list_all(gw)


def get_link_by_slug(gw: QueryGateway, slug: str) -> Optional[dict[str, Any]]:
    return link_repo.get_by_slug(gw, slug)


def create_link(gw: QueryGateway, body: Mapping[str, Any], log: LogContext) -> dict[str, Any]:
    """id / slug / createdAt 由服务端生成，客户端传入的一律忽略"""
    require_fields(body, ("businessName", "gmbReviewLink"), "Business name and GMB review link are required")
    link = {
        "id": new_id(),
        "slug": new_slug(),
        "businessName": body["businessName"].strip(),
        "gmbReviewLink": body["gmbReviewLink"].strip(),
        "logoUrl": body.get("logoUrl") or "",
        "backgroundImageUrl": body.get("backgroundImageUrl") or "",
        "createdAt": now_iso(),
    }
    log.set_entity("link", link["id"])
    created = link_repo.insert(gw, link)
    log.set_after(created)
    return created


def update_link(gw: QueryGateway, link_id: str, updates: Mapping[str, Any], log: LogContext) -> dict[str, Any]:
    fields = {k: v for k, v in updates.items() if k in link_repo.UPDATABLE_FIELDS}
    for k in ("businessName", "gmbReviewLink"):
        if k in fields and (fields[k] is None or not str(fields[k]).strip()):
            raise ValidationError(f"{k} cannot be empty")
    if not fields:
        raise ValidationError("No updatable fields provided")
    log.set_entity("link", link_id)
    if not link_repo.update(gw, link_id, fields):
        raise NotFoundError("Link not found")
    updated = link_repo.get_by_id(gw, link_id)
    if updated is None:
        raise NotFoundError("Link not found")
    log.set_after(updated)
    return updated


def delete_link(gw: QueryGateway, link_id: str, log: LogContext):
    log.set_entity("link", link_id)
    if not link_repo.delete(gw, link_id):
        raise NotFoundError("Link not found")


def share_url(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/review/{slug}"
