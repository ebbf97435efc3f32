from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from pydantic import BaseModel

from ..config import Settings, get_settings
from ..db import QueryGateway, get_gateway
from ..errors import AuthError, ReviewFunnelError, ValidationError
from ..logs import LogContext
from ..services import auth_svc, setup_svc

router = APIRouter()

SESSION_MAX_AGE = int(auth_svc.SESSION_TTL.total_seconds())


def require_admin(request: Request, settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """
    Route dependency: decoded session claims, or AuthError (401).

    Usage:
        @router.post("/protected")
        def protected(session: dict = Depends(require_admin)): ...
    """
    claims = auth_svc.verify_session(request.cookies.get(auth_svc.SESSION_COOKIE), settings.jwt_secret)
    if claims is None:
        raise AuthError("Unauthorized")
    return claims


class LoginBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.post("/api/auth/login")
def api_auth_login(
    body: LoginBody,
    response: Response,
    gw: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    log = LogContext("LOGIN", user=body.username or "anonymous")
    log.set_payload({"username": body.username})
    if not body.username or not body.password:
        log.write("ERROR", "missing credentials")
        raise HTTPException(status_code=400, detail="Username and password are required")
    try:
        user = auth_svc.authenticate(gw, body.username, body.password)
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Internal Server Error")
    if user is None:
        log.write("ERROR", "invalid credentials")
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = auth_svc.issue_session({"id": user["id"], "username": user["username"]}, settings.jwt_secret)
    response.set_cookie(
        key=auth_svc.SESSION_COOKIE,
        value=token,
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.secure_cookies,
    )
    log.set_entity("user", user["id"])
    log.write("OK")
    return {"success": True}


@router.post("/api/auth/logout")
def api_auth_logout(response: Response, settings: Settings = Depends(get_settings)):
    response.delete_cookie(
        key=auth_svc.SESSION_COOKIE,
        path="/",
        httponly=True,
        samesite="strict",
        secure=settings.secure_cookies,
    )
    return {"success": True}


@router.get("/api/auth/session")
def api_auth_session(request: Request, settings: Settings = Depends(get_settings)):
    claims = auth_svc.verify_session(request.cookies.get(auth_svc.SESSION_COOKIE), settings.jwt_secret)
    if claims is None:
        return {"authenticated": False, "username": None}
    return {"authenticated": True, "username": claims["username"]}


@router.post("/api/auth/setup")
def api_auth_setup(
    gw: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    """建表 + 按配置创建初始管理员（ADMIN_USERNAME / ADMIN_PASSWORD），可重复调用"""
    log = LogContext("SETUP")
    try:
        messages = setup_svc.run_setup(gw, settings.admin_username, settings.admin_password)
        log.set_after(messages)
        log.write("OK")
        return {"messages": messages}
    except ValidationError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail=str(e))
