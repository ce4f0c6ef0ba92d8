import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("AUDIT_LOG_DATABASE", "false")

from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shiftbook.infrastructure.database import Base
from shiftbook.domain.models.audit_log import AuditLog  # noqa: F401
from shiftbook.domain.models.category import (
    ShiftBookCategory,
    ShiftBookCategoryMail,
    ShiftBookCategoryTranslation,
    ShiftBookCategoryWorkcenter,
)
from shiftbook.domain.models.shiftbook_log import ShiftBookLog, ShiftBookLogRecipient
from shiftbook.domain.models.teams_channel import TeamsChannel
from shiftbook.infrastructure.repositories.category_repository import SQLAlchemyCategoryRepository
from shiftbook.infrastructure.repositories.log_repository import SQLAlchemyLogRepository

# SQLite keeps no zone information, so seeds use naive UTC
BASE_TIME = datetime(2024, 5, 6, 8, 0, 0)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def log_repo(db):
    return SQLAlchemyLogRepository(db, ShiftBookLog)


@pytest.fixture
def category_repo(db):
    return SQLAlchemyCategoryRepository(db, ShiftBookCategory)


@pytest.fixture
def make_log(db):
    counter = {"n": 0}

    def _make_log(
        workcenter="WC001",
        log_dt=None,
        destinations=(),
        plant="1000",
        category_id="CAT1",
        subject="Shift handover",
        message="Nothing to report",
        user_id="operator1",
        is_read=False,
    ) -> ShiftBookLog:
        counter["n"] += 1
        log = ShiftBookLog(
            plant=plant,
            shop_order=f"SO{counter['n']:04d}",
            step_id="0010",
            split="01",
            workcenter=workcenter,
            user_id=user_id,
            log_dt=log_dt or BASE_TIME + timedelta(minutes=counter["n"]),
            category_id=category_id,
            subject=subject,
            message=message,
            is_read=is_read,
            recipients=[ShiftBookLogRecipient(workcenter=wc) for wc in destinations],
        )
        db.add(log)
        db.commit()
        db.refresh(log)
        return log

    return _make_log


@pytest.fixture
def make_category(db):
    def _make_category(
        category_id="CAT1",
        plant="1000",
        mode="EMAIL",
        mails=("shift.lead@example.com",),
        workcenters=(),
        translations=None,
        teams_webhook=None,
        teams_active=True,
        send_mail=True,
    ) -> ShiftBookCategory:
        category = ShiftBookCategory(id=category_id, plant=plant, notification_mode=mode, send_mail=send_mail)
        db.add(category)
        db.add_all(
            ShiftBookCategoryMail(category_id=category_id, plant=plant, mail_address=mail) for mail in mails
        )
        db.add_all(ShiftBookCategoryWorkcenter(category_id=category_id, workcenter=wc) for wc in workcenters)
        for language, description in (translations or {}).items():
            db.add(
                ShiftBookCategoryTranslation(
                    category_id=category_id,
                    plant=plant,
                    language=language.upper(),
                    description=description,
                )
            )
        if teams_webhook:
            db.add(
                TeamsChannel(
                    category_id=category_id,
                    name=f"{category_id} channel",
                    webhook_url=teams_webhook,
                    active=teams_active,
                )
            )
        db.commit()
        return category

    return _make_category
