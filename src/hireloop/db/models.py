from __future__ import annotations

from typing import Any

from sqlalchemy import JSON, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from hireloop.db.base import Base, TimestampMixin


class SessionDocument(TimestampMixin, Base):
    __tablename__ = "session_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    session_id: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    current_step: Mapped[str] = mapped_column(String(40), default="", nullable=False)
    payload_json: Mapped[dict[str, Any]] = mapped_column(JSON, default=dict, nullable=False)
