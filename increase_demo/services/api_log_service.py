"""
API request log service.

Persists the calls an IncreaseClient recorded. Services wrap
each demo operation in capture() so the log is written even
when the operation fails halfway through.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from increase_demo.clients.increase import IncreaseClient, RequestRecord
from increase_demo.models.api_request import ApiRequestLog


class ApiLogService:

    def __init__(self, db: Session):
        self.db = db

    def record(
        self, record: RequestRecord, session_id: int
    ) -> ApiRequestLog:
        """Append one entry to the log."""
        entry = ApiRequestLog(
            session_id=session_id,
            method=record.method,
            path=record.path,
            status_code=record.status_code,
            resource_type=record.resource_type,
            resource_id=record.resource_id,
            created_at=record.timestamp,
        )
        self.db.add(entry)
        return entry

    def record_all(
        self, records: list[RequestRecord], session_id: int
    ) -> list[ApiRequestLog]:
        entries = [self.record(r, session_id) for r in records]
        self.db.flush()
        return entries

    @contextmanager
    def capture(
        self, client: IncreaseClient, session_id: int
    ) -> Iterator[IncreaseClient]:
        """
        Persist everything the client records inside the block.

        Entries are flushed on the way out whether or not the
        block raised. The caller still controls the commit.
        """
        try:
            yield client
        finally:
            self.record_all(client.drain_requests(), session_id)

    def list_for_session(self, session_id: int) -> list[ApiRequestLog]:
        """Entries in the order the calls were made."""
        entries = self.db.execute(
            select(ApiRequestLog)
            .where(ApiRequestLog.session_id == session_id)
            .order_by(ApiRequestLog.id)
        ).scalars().all()
        return list(entries)

    def clear(self, session_id: int) -> int:
        """Delete a session's entries. Returns how many were removed."""
        result = self.db.execute(
            delete(ApiRequestLog).where(ApiRequestLog.session_id == session_id)
        )
        self.db.flush()
        return result.rowcount
