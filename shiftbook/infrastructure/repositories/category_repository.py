"""
SQLAlchemy Implementation of the Category Repository.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from shiftbook.domain.models.category import (
    ShiftBookCategory,
    ShiftBookCategoryMail,
    ShiftBookCategoryTranslation,
    ShiftBookCategoryWorkcenter,
)
from shiftbook.domain.models.teams_channel import TeamsChannel
from shiftbook.domain.repositories.category_repository import CategoryRepository
from shiftbook.infrastructure.repositories.base_repository import SQLAlchemyRepository


class SQLAlchemyCategoryRepository(SQLAlchemyRepository[ShiftBookCategory], CategoryRepository):
    """Category repository implementation using SQLAlchemy."""

    def get_category(self, category_id: str, plant: str) -> Optional[ShiftBookCategory]:
        return self.get_by_id((category_id, plant))

    def get_teams_channel(self, category_id: str) -> Optional[TeamsChannel]:
        return (
            self.db.query(TeamsChannel)
            .filter(TeamsChannel.category_id == category_id)
            .first()
        )

    def get_mail_recipients(self, category_id: str, plant: str) -> List[str]:
        rows = (
            self.db.query(ShiftBookCategoryMail.mail_address)
            .filter(
                ShiftBookCategoryMail.category_id == category_id,
                ShiftBookCategoryMail.plant == plant,
            )
            .order_by(ShiftBookCategoryMail.mail_address)
            .all()
        )
        return [r[0] for r in rows]

    def get_destination_workcenters(self, category_id: str) -> List[str]:
        rows = (
            self.db.query(ShiftBookCategoryWorkcenter.workcenter)
            .filter(ShiftBookCategoryWorkcenter.category_id == category_id)
            .order_by(ShiftBookCategoryWorkcenter.workcenter)
            .all()
        )
        return [r[0] for r in rows]

    def get_translations(
        self,
        category_ids: Iterable[str],
        plant: str,
        languages: Iterable[str],
    ) -> Dict[Tuple[str, str], str]:
        ids = list(set(category_ids))
        codes = [lang.upper() for lang in languages]
        if not ids or not codes:
            return {}

        rows = (
            self.db.query(ShiftBookCategoryTranslation)
            .filter(
                ShiftBookCategoryTranslation.category_id.in_(ids),
                ShiftBookCategoryTranslation.plant == plant,
                ShiftBookCategoryTranslation.language.in_(codes),
            )
            .all()
        )
        return {(r.category_id, r.language): r.description for r in rows}
