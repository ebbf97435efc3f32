from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import requests

logger = logging.getLogger(__name__)


def notify_feedback(
    webhook_url: Optional[str],
    feedback: Mapping[str, Any],
    source: Optional[str] = None,
    timeout: float = 5.0,
) -> bool:
    """
    Forward a stored feedback entry to the external form endpoint.

    Best effort: returns False on any failure and never raises.
    """
    if not webhook_url:
        return False
    form = {
        "Source": source or feedback.get("linkId") or "",
        "rating": str(feedback.get("rating", "")),
        "Name": feedback.get("name") or "",
        "Email": feedback.get("email") or "",
        "Message": feedback.get("comment") or "",
    }
    try:
        resp = requests.post(webhook_url, data=form, timeout=timeout)
    except requests.RequestException as e:
        logger.warning("feedback webhook failed: %s", e)
        return False
    if resp.status_code >= 400:
        logger.warning("feedback webhook returned HTTP %s", resp.status_code)
        return False
    return True
