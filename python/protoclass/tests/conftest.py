"""Shared query-service doubles."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any

import pytest


class StubQueryService:
    """Stub service for testing - records statements, replays canned results."""

    def __init__(self, responses: list | None = None):
        self.responses = list(responses or [])
        self.calls: list[tuple[str, list[Any]]] = []

    async def query(self, sql: str, params: Any = None) -> Any:
        self.calls.append((sql, list(params or [])))
        if not self.responses:
            return []
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@dataclass
class QueryResult:
    lastrowid: int | None
    rowcount: int


class SqliteQueryService:
    """In-memory sqlite3 database behind the query(sql, params) contract."""

    def __init__(self):
        self.connection = sqlite3.connect(":memory:")
        self.statements: list[str] = []

    async def query(self, sql: str, params: Any = None) -> Any:
        self.statements.append(sql)
        cursor = self.connection.execute(sql, list(params or []))
        if cursor.description is not None:
            columns = [column[0] for column in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        self.connection.commit()
        return QueryResult(lastrowid=cursor.lastrowid, rowcount=cursor.rowcount)

    def close(self) -> None:
        self.connection.close()


@pytest.fixture
def stub_service():
    def factory(*responses: Any) -> StubQueryService:
        return StubQueryService(list(responses))

    return factory


@pytest.fixture
def sqlite_service():
    service = SqliteQueryService()
    yield service
    service.close()
