from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..db import QueryGateway, get_gateway
from ..errors import NotFoundError, ReviewFunnelError, ValidationError
from ..logs import LogContext
from ..services.link_svc import create_link, delete_link, list_links, update_link
from .auth import require_admin

router = APIRouter()


class LinkBody(BaseModel):
    businessName: Optional[str] = None
    gmbReviewLink: Optional[str] = None
    logoUrl: Optional[str] = None
    backgroundImageUrl: Optional[str] = None


@router.get("/api/links")
def api_links_list(gw: QueryGateway = Depends(get_gateway)):
    try:
        return list_links(gw)
    except ReviewFunnelError as e:
        raise HTTPException(status_code=500, detail=f"Failed to fetch links: {e}")


@router.post("/api/links", status_code=201)
def api_links_create(
    body: LinkBody,
    gw: QueryGateway = Depends(get_gateway),
    session: dict = Depends(require_admin),
):
    log = LogContext("CREATE_LINK", user=session["username"])
    log.set_payload(body.model_dump())
    try:
        link = create_link(gw, body.model_dump(), log)
        log.write("OK")
        return link
    except ValidationError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Failed to create link")


@router.patch("/api/links")
def api_links_update(
    body: LinkBody,
    id: Optional[str] = Query(None),
    gw: QueryGateway = Depends(get_gateway),
    session: dict = Depends(require_admin),
):
    log = LogContext("UPDATE_LINK", user=session["username"])
    updates = body.model_dump(exclude_unset=True)
    log.set_payload({"id": id, **updates})
    if not id:
        log.write("ERROR", "missing id")
        raise HTTPException(status_code=400, detail="Link ID is required")
    try:
        link = update_link(gw, id, updates, log)
        log.write("OK")
        return link
    except ValidationError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=404, detail="Link not found")
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Failed to update link")


@router.delete("/api/links")
def api_links_delete(
    id: Optional[str] = Query(None),
    gw: QueryGateway = Depends(get_gateway),
    session: dict = Depends(require_admin),
):
    log = LogContext("DELETE_LINK", user=session["username"])
    log.set_payload({"id": id})
    if not id:
        log.write("ERROR", "missing id")
        raise HTTPException(status_code=400, detail="Link ID is required")
    try:
        delete_link(gw, id, log)
        log.write("OK")
        return {"message": "Link deleted"}
    except NotFoundError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=404, detail="Link not found")
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Failed to delete link")
