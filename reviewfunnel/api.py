"""
FastAPI app factory aggregating per-domain routers under reviewfunnel/routes.
The served instance lives in reviewfunnel/main.py (`uvicorn reviewfunnel.main:app`).
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import APP_NAME, __version__
from .config import Settings, load_settings
from .db import QueryGateway, build_gateway
from .errors import (
    AuthError,
    ConfigurationError,
    NotFoundError,
    ReviewFunnelError,
    ValidationError,
)
from .logs import LogContext, configure_logging
from .services import setup_svc

logger = logging.getLogger(__name__)

_ERROR_STATUS = {
    ValidationError: 400,
    AuthError: 401,
    NotFoundError: 404,
}


def create_app(settings: Optional[Settings] = None, gateway: Optional[QueryGateway] = None) -> FastAPI:
    """
    Build the app. Settings are resolved now (a production deployment without
    a session secret fails here); the storage gateway is opened at startup
    unless one is injected.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title=APP_NAME, version=__version__)
    app.state.settings = settings
    app.state.gateway = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def on_startup():
        gw = gateway or build_gateway(settings)
        app.state.gateway = gw
        logger.info("storage backend: %s", gw.name)
        # 本地后端（sqlite / memory）启动时自动建表；D1 通过 /api/auth/setup 或脚本初始化
        if gw.name in ("sqlite", "memory"):
            try:
                setup_svc.ensure_schema(gw)
                setup_svc.ensure_admin(gw, settings.admin_username, settings.admin_password)
            except ReviewFunnelError as e:
                LogContext("STARTUP").write("ERROR", f"ensure_schema_failed: {e}")
                raise

    @app.on_event("shutdown")
    def on_shutdown():
        gw = app.state.gateway
        if gw is not None and gateway is None:
            gw.close()
        app.state.gateway = None

    @app.exception_handler(ReviewFunnelError)
    async def on_domain_error(request: Request, exc: ReviewFunnelError):
        status = 500
        for etype, code in _ERROR_STATUS.items():
            if isinstance(exc, etype):
                status = code
                break
        if status == 500:
            level = logging.CRITICAL if isinstance(exc, ConfigurationError) else logging.ERROR
            logger.log(level, "%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
        return JSONResponse(status_code=status, content={"detail": str(exc)})

    # 请求体缺失或字段类型不符：与缺字段一样按 400 返回
    @app.exception_handler(RequestValidationError)
    async def on_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        if errors:
            first = errors[0]
            where = ".".join(str(p) for p in first.get("loc", ()) if p != "body") or "body"
            detail = f"Invalid request: {where}: {first.get('msg', 'invalid value')}"
        else:
            detail = "Invalid request"
        log = LogContext("REQUEST")
        log.set_payload({"method": request.method, "path": request.url.path})
        log.write("ERROR", detail)
        return JSONResponse(status_code=400, content={"detail": detail})

    # Include routers (split by business domain)
    from .routes import base as base_routes
    from .routes import links as links_routes
    from .routes import feedback as feedback_routes
    from .routes import auth as auth_routes
    from .routes import review as review_routes

    app.include_router(base_routes.router)
    app.include_router(links_routes.router)
    app.include_router(feedback_routes.router)
    app.include_router(auth_routes.router)
    app.include_router(review_routes.router)
    return app
