"""Teams webhook channel: one per category, shared by every plant using that category."""

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from shiftbook.infrastructure.database import Base


class TeamsChannel(Base):
    __tablename__ = "teams_channels"

    id = Column(Integer, primary_key=True, autoincrement=True)
    category_id = Column(String(36), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=True)
    webhook_url = Column(String(2048), nullable=False)
    description = Column(String(1000), nullable=True)
    active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<TeamsChannel {self.category_id} - {self.name} ({'active' if self.active else 'inactive'})>"
