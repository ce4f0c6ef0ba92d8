"""Shift book log entries and their destination workcenters."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import relationship

from shiftbook.infrastructure.database import Base


def _uuid() -> str:
    return str(uuid.uuid4())


class ShiftBookLog(Base):
    __tablename__ = "shiftbook_logs"

    id = Column(String(36), primary_key=True, default=_uuid)
    plant = Column(String(4), nullable=False, index=True)
    shop_order = Column(String(30), nullable=False)
    step_id = Column(String(4), nullable=False)
    split = Column(String(3), nullable=False, default="")
    workcenter = Column(String(36), nullable=False, index=True)  # origin
    user_id = Column(String(512), nullable=False)
    log_dt = Column(DateTime(timezone=True), nullable=False, index=True)
    category_id = Column(String(36), nullable=False, index=True)
    subject = Column(String(1024), nullable=False)
    message = Column(Text, nullable=False)

    # Only mutable state of a log
    is_read = Column(Boolean, nullable=False, default=False)
    read_at = Column(DateTime(timezone=True), nullable=True)

    recipients = relationship(
        "ShiftBookLogRecipient",
        back_populates="log",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_shiftbook_logs_plant_log_dt", "plant", "log_dt"),
    )

    def __repr__(self):
        return f"<ShiftBookLog {self.plant}/{self.workcenter} - {self.subject}>"


class ShiftBookLogRecipient(Base):
    """Destination workcenter of a log. Written once with its parent."""

    __tablename__ = "shiftbook_log_recipients"

    log_id = Column(
        String(36),
        ForeignKey("shiftbook_logs.id", ondelete="CASCADE"),
        primary_key=True,
    )
    workcenter = Column(String(36), primary_key=True, index=True)

    log = relationship("ShiftBookLog", back_populates="recipients")

    def __repr__(self):
        return f"<ShiftBookLogRecipient {self.log_id} -> {self.workcenter}>"
