"""
公开评价流程：rating -> feedback -> thanks

- 5 星：直接跳转到公开评价地址（gmbReviewLink），进入 thanks
- 1~4 星：进入 feedback，需要填写 name / email / comment
- feedback 提交：尽力写入，无论后端成败都进入 thanks
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from ..config import Settings
from ..db import QueryGateway
from ..errors import ReviewFunnelError
from ..logs import LogContext
from . import feedback_svc
from .utils import parse_rating, require_fields

logger = logging.getLogger(__name__)

STEP_FEEDBACK = "feedback"
STEP_THANKS = "thanks"

REDIRECT_RATING = 5


@dataclass
class FlowOutcome:
    step: str
    redirect: Optional[str] = None
    recorded: Optional[bool] = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"step": self.step}
        if self.redirect is not None:
            out["redirect"] = self.redirect
        return out


def rate(link: Mapping[str, Any], rating_value: Any) -> FlowOutcome:
    rating = parse_rating(rating_value)
    if rating == REDIRECT_RATING:
        return FlowOutcome(step=STEP_THANKS, redirect=link["gmbReviewLink"])
    return FlowOutcome(step=STEP_FEEDBACK)


def submit(
    gw: QueryGateway,
    link: Mapping[str, Any],
    body: Mapping[str, Any],
    log: LogContext,
    settings: Optional[Settings] = None,
) -> FlowOutcome:
    """
    Visitor-side submission from the feedback step.

    Missing visitor input is still rejected (ValidationError); anything that
    goes wrong after that is logged and the visitor lands on thanks anyway.
    """
    rating = parse_rating(body.get("rating"))
    if rating == REDIRECT_RATING:
        return FlowOutcome(step=STEP_THANKS, redirect=link["gmbReviewLink"])
    require_fields(body, ("name", "email", "comment"), "Name, email and comment are required")

    payload = {**body, "linkId": link["id"], "rating": rating}
    try:
        feedback_svc.submit_feedback(gw, payload, log, settings=settings, source=link.get("businessName"))
    except ReviewFunnelError as e:
        logger.error("feedback capture failed for link %s: %s", link.get("id"), e)
        log.write("ERROR", str(e))
        return FlowOutcome(step=STEP_THANKS, recorded=False)
    log.write("OK")
    return FlowOutcome(step=STEP_THANKS, recorded=True)
