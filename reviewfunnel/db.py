from __future__ import annotations

# reviewfunnel/db.py
import logging
import os
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator, Sequence

from fastapi import Request

from .config import Settings
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

MEMORY = ":memory:"


@dataclass
class QueryResult:
    """Normalized result of one statement, whichever backend ran it."""
    rows: list[dict[str, Any]] = field(default_factory=list)
    success: bool = True
    rows_affected: int = 0

    @classmethod
    def failed(cls) -> "QueryResult":
        return cls(rows=[], success=False, rows_affected=0)


class QueryGateway:
    """
    SQL text + positional params in, QueryResult out.

    A store that rejects the statement yields success=False; failing to reach
    a remote store raises TransportError.
    """

    name = "base"

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        raise NotImplementedError

    def close(self) -> None:
        pass


@contextmanager
def get_conn(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    获取 SQLite 连接（自动提交模式），row_factory 设为 Row。
    """
    conn = sqlite3.connect(db_path, check_same_thread=False, isolation_level=None)
    try:
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()


class SqliteGateway(QueryGateway):
    """
    File backend, or in-memory backend when path is ":memory:".

    The in-memory database lives in one shared connection guarded by a lock;
    it does not survive the process.
    """

    def __init__(self, path: str = MEMORY):
        self.path = path
        self._lock = threading.Lock()
        self._mem: sqlite3.Connection | None = None
        if path == MEMORY:
            self.name = "memory"
            self._mem = sqlite3.connect(MEMORY, check_same_thread=False, isolation_level=None)
            self._mem.row_factory = sqlite3.Row
        else:
            self.name = "sqlite"
            dirn = os.path.dirname(path) or "."
            os.makedirs(dirn, exist_ok=True)

    def _run(self, conn: sqlite3.Connection, sql: str, params: Sequence[Any]) -> QueryResult:
        try:
            cur = conn.execute(sql, tuple(params))
            rows = [dict(r) for r in cur.fetchall()]
        except sqlite3.Error as e:
            logger.error("sqlite error: %s (sql=%s)", e, sql)
            return QueryResult.failed()
        changes = cur.rowcount if cur.rowcount and cur.rowcount > 0 else 0
        return QueryResult(rows=rows, success=True, rows_affected=changes)

    def execute(self, sql: str, params: Sequence[Any] = ()) -> QueryResult:
        if self._mem is not None:
            with self._lock:
                return self._run(self._mem, sql, params)
        with get_conn(self.path) as conn:
            return self._run(conn, sql, params)

    def close(self) -> None:
        if self._mem is not None:
            self._mem.close()
            self._mem = None


def build_gateway(settings: Settings) -> QueryGateway:
    backend = settings.storage_backend
    if backend == "d1":
        from .providers.d1_provider import D1Gateway
        return D1Gateway(
            settings.cf_account_id,
            settings.cf_database_id,
            settings.cf_api_token,
            timeout=settings.request_timeout,
        )
    if backend == "sqlite":
        return SqliteGateway(settings.db_path)
    if backend == "memory":
        return SqliteGateway(MEMORY)
    raise ConfigurationError(f"unknown storage_backend: {backend}")


def get_gateway(request: Request) -> QueryGateway:
    """FastAPI dependency: the gateway chosen at startup."""
    gw = getattr(request.app.state, "gateway", None)
    if gw is None:
        raise ConfigurationError("storage gateway not initialised")
    return gw
