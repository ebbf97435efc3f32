from __future__ import annotations

from typing import Optional

from ..db import QueryGateway
from ..repository import feedback_repo, link_repo, user_repo
from . import auth_svc


def ensure_schema(gw: QueryGateway):
    """确保三张表存在（幂等）"""
    link_repo.ensure_schema(gw)
    feedback_repo.ensure_schema(gw)
    user_repo.ensure_schema(gw)


def ensure_admin(gw: QueryGateway, username: Optional[str], password: Optional[str]) -> str:
    """按配置创建初始管理员；已存在则不覆盖。返回 created / exists / skipped / failed"""
    if not username or not password:
        return "skipped"
    if auth_svc.find_user_by_username(gw, username):
        return "exists"
    return "created" if auth_svc.create_user(gw, username, password) else "failed"


def run_setup(gw: QueryGateway, username: Optional[str], password: Optional[str]) -> list[str]:
    ensure_schema(gw)
    messages = ["Schema ready."]
    status = ensure_admin(gw, username, password)
    if status == "created":
        messages.append(f"Created admin user {username}.")
    elif status == "exists":
        messages.append(f"Admin user {username} already exists.")
    elif status == "failed":
        messages.append(f"Failed to create admin user {username}.")
    else:
        messages.append("No bootstrap admin configured (ADMIN_USERNAME / ADMIN_PASSWORD).")
    return messages
