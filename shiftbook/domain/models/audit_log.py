"""Audit trail: one row per notification attempt and per log mutation."""

from sqlalchemy import JSON, Column, DateTime, Index, Integer, String, Text
from sqlalchemy.sql import func

from shiftbook.infrastructure.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor = Column(String(512), nullable=False)
    action = Column(String(64), nullable=False)
    entity = Column(String(64), nullable=False)
    entity_id = Column(String(64), nullable=True)
    channel = Column(String(16), nullable=True)  # email, teams
    result = Column(String(16), nullable=False)  # SUCCESS, FAILURE
    error = Column(Text, nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("ix_audit_logs_entity", "entity", "entity_id"),
    )

    def __repr__(self):
        return f"<AuditLog {self.action} {self.entity_id} - {self.result}>"
