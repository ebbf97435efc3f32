from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import Settings, get_settings
from ..db import QueryGateway, get_gateway
from ..errors import ReviewFunnelError, ValidationError
from ..logs import LogContext
from ..services import review_flow_svc
from ..services.link_svc import get_link_by_slug, share_url

logger = logging.getLogger(__name__)

router = APIRouter()

PUBLIC_FIELDS = ("id", "slug", "businessName", "gmbReviewLink", "logoUrl", "backgroundImageUrl")


class RateBody(BaseModel):
    rating: Any = None


class SubmitBody(BaseModel):
    rating: Any = None
    name: Optional[str] = None
    email: Optional[str] = None
    comment: Optional[str] = None


def _load_link(gw: QueryGateway, slug: str) -> dict:
    try:
        link = get_link_by_slug(gw, slug)
    except ReviewFunnelError as e:
        raise HTTPException(status_code=500, detail=f"Failed to load review link: {e}")
    if link is None:
        raise HTTPException(status_code=404, detail="Review link not found")
    return link


@router.get("/api/review/{slug}")
def api_review_get(
    slug: str,
    gw: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    link = _load_link(gw, slug)
    out = {k: link[k] for k in PUBLIC_FIELDS}
    out["shareUrl"] = share_url(settings.public_base_url, link["slug"])
    return out


@router.post("/api/review/{slug}/rate")
def api_review_rate(slug: str, body: RateBody, gw: QueryGateway = Depends(get_gateway)):
    link = _load_link(gw, slug)
    try:
        return review_flow_svc.rate(link, body.rating).to_dict()
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/api/review/{slug}/submit")
def api_review_submit(
    slug: str,
    body: SubmitBody,
    gw: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    log = LogContext("REVIEW_SUBMIT")
    log.set_payload({"slug": slug, "rating": body.rating})
    try:
        link = get_link_by_slug(gw, slug)
    except ReviewFunnelError as e:
        # 后端不可用也不阻塞访客
        logger.error("review link lookup failed for %s: %s", slug, e)
        log.write("ERROR", str(e))
        return {"step": review_flow_svc.STEP_THANKS}
    if link is None:
        raise HTTPException(status_code=404, detail="Review link not found")
    try:
        outcome = review_flow_svc.submit(gw, link, body.model_dump(), log, settings=settings)
    except ValidationError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    return outcome.to_dict()
