"""Category configuration: default content, notification mode, mail list, translations."""

from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func

from shiftbook.infrastructure.database import Base


class ShiftBookCategory(Base):
    __tablename__ = "shiftbook_categories"

    # The same category id may exist in several plants
    id = Column(String(36), primary_key=True)
    plant = Column(String(4), primary_key=True)

    default_subject = Column(String(1024), nullable=True)
    default_message = Column(Text, nullable=True)
    notification_mode = Column(String(10), nullable=True)  # EMAIL, TEAMS, BOTH; NULL on legacy rows
    send_mail = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    def __repr__(self):
        return f"<ShiftBookCategory {self.plant}/{self.id} - {self.notification_mode}>"


class ShiftBookCategoryMail(Base):
    __tablename__ = "shiftbook_category_mails"

    category_id = Column(String(36), primary_key=True)
    plant = Column(String(4), primary_key=True)
    mail_address = Column(String(512), primary_key=True)

    def __repr__(self):
        return f"<ShiftBookCategoryMail {self.category_id} - {self.mail_address}>"


class ShiftBookCategoryWorkcenter(Base):
    """Default destination workcenters copied onto every new log of the category."""

    __tablename__ = "shiftbook_category_workcenters"

    category_id = Column(String(36), primary_key=True)
    workcenter = Column(String(36), primary_key=True)


class ShiftBookCategoryTranslation(Base):
    __tablename__ = "shiftbook_category_translations"

    category_id = Column(String(36), primary_key=True)
    plant = Column(String(4), primary_key=True)
    language = Column(String(2), primary_key=True)  # upper-case, e.g. "EN"
    description = Column(String(512), nullable=False)
