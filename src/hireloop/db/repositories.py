from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from hireloop.db.models import SessionDocument

logger = logging.getLogger(__name__)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    def get_document(self, key: str) -> SessionDocument | None:
        return self.session.scalar(select(SessionDocument).where(SessionDocument.key == key))

    def list_documents(self, limit: int = 50) -> list[SessionDocument]:
        statement = select(SessionDocument).order_by(SessionDocument.updated_at.desc()).limit(limit)
        return list(self.session.scalars(statement).all())

    def upsert_document(self, key: str, payload: dict[str, Any]) -> SessionDocument:
        record = self.get_document(key)
        if record is None:
            record = SessionDocument(key=key)
            self.session.add(record)

        record.payload_json = payload
        record.session_id = str(payload.get("session_id", ""))
        record.current_step = str(payload.get("current_step", ""))

        self.session.commit()
        self.session.refresh(record)
        return record

    def delete_document(self, key: str) -> bool:
        result = self.session.execute(delete(SessionDocument).where(SessionDocument.key == key))
        self.session.commit()
        return bool(result.rowcount)


class SqlSessionStorage:
    """Session storage backed by the ``session_documents`` table.

    Last writer wins; there is no version check on save.
    """

    def __init__(self, session: Session):
        self.repo = Repository(session)

    def load(self, key: str) -> dict[str, Any] | None:
        record = self.repo.get_document(key)
        if record is None:
            return None
        return dict(record.payload_json or {})

    def save(self, key: str, document: dict[str, Any]) -> None:
        self.repo.upsert_document(key, document)
        logger.debug("Stored session document key=%s", key)

    def delete(self, key: str) -> bool:
        deleted = self.repo.delete_document(key)
        if deleted:
            logger.info("Deleted session document key=%s", key)
        return deleted
