from __future__ import annotations

from typing import Any, Mapping, Optional

from ..config import Settings
from ..db import QueryGateway
from ..logs import LogContext
from ..repository import feedback_repo
from . import notify_svc
from .utils import new_id, now_iso, parse_rating, require_fields

REQUIRED_FIELDS = ("linkId", "name", "email", "comment")


def submit_feedback(
    gw: QueryGateway,
    body: Mapping[str, Any],
    log: LogContext,
    settings: Optional[Settings] = None,
    source: Optional[str] = None,
) -> dict[str, Any]:
    """
    校验 -> 写入 feedback 表 -> （可选）转发到外部表单

    转发只在写入成功之后进行，失败不影响返回结果。
    """
    require_fields(body, REQUIRED_FIELDS, "All fields are required")
    rating = parse_rating(body.get("rating"))
    feedback = {
        "id": new_id(),
        "linkId": body["linkId"],
        "name": body["name"].strip(),
        "email": body["email"].strip(),
        "comment": body["comment"].strip(),
        "rating": rating,
        "createdAt": now_iso(),
    }
    log.set_entity("feedback", feedback["id"])
    created = feedback_repo.insert(gw, feedback)
    log.set_after({"id": created["id"], "linkId": created["linkId"], "rating": rating})

    if settings is not None and settings.feedback_webhook_url:
        notify_svc.notify_feedback(settings.feedback_webhook_url, created, source=source)
    return created
