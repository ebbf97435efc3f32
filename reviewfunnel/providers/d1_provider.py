from __future__ import annotations

import json
import logging
from typing import Any, Sequence

import requests

from ..db import QueryGateway, QueryResult
from ..errors import ConfigurationError, TransportError

logger = logging.getLogger(__name__)

D1_API_BASE = "https://api.cloudflare.com/client/v4"


class D1Gateway(QueryGateway):
    """Thin wrapper around the Cloudflare D1 HTTP query endpoint: one POST per statement, no retry."""

    name = "d1"

    def __init__(
        self,
        account_id: str | None,
        database_id: str | None,
        api_token: str | None,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        base_url: str = D1_API_BASE,
    ):
        if not account_id or not database_id or not api_token:
            raise ConfigurationError(
                "Missing D1 configuration (CF_ACCOUNT_ID, CF_DATABASE_ID, CF_API_TOKEN)."
            )
        self.url = f"{base_url}/accounts/{account_id}/d1/database/{database_id}/query"
        self.timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bearer {api_token}",
            "Content-Type": "application/json",
        }

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        try:
            resp = self._session.post(
                self.url,
                headers=self._headers,
                json={"sql": sql, "params": list(params)},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("D1 connection error: %s", e)
            raise TransportError(str(e)) from e

        try:
            data = resp.json()
        except ValueError:
            logger.error("D1 error: non-JSON response (HTTP %s)", resp.status_code)
            return QueryResult.failed()

        if not isinstance(data, dict) or not data.get("success"):
            errors = data.get("errors") if isinstance(data, dict) else data
            logger.error("D1 error: %s", json.dumps(errors, ensure_ascii=False, default=str))
            return QueryResult.failed()

        result = data.get("result") or []
        first = result[0] if result else {}
        meta = first.get("meta") or {}
        return QueryResult(
            rows=list(first.get("results") or []),
            success=True,
            rows_affected=int(meta.get("changes") or 0),
        )

    def close(self) -> None:
        self._session.close()
