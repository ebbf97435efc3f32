from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import Settings, get_settings
from ..db import QueryGateway, get_gateway
from ..errors import ReviewFunnelError, ValidationError
from ..logs import LogContext
from ..services.feedback_svc import submit_feedback

router = APIRouter()


class FeedbackBody(BaseModel):
    linkId: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    comment: Optional[str] = None
    rating: Any = None


@router.post("/api/feedback", status_code=201)
def api_feedback_create(
    body: FeedbackBody,
    gw: QueryGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings),
):
    log = LogContext("SUBMIT_FEEDBACK")
    log.set_payload({"linkId": body.linkId, "rating": body.rating})
    try:
        feedback = submit_feedback(gw, body.model_dump(), log, settings=settings)
        log.write("OK")
        return feedback
    except ValidationError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=400, detail=str(e))
    except ReviewFunnelError as e:
        log.write("ERROR", str(e))
        raise HTTPException(status_code=500, detail="Failed to submit feedback")
