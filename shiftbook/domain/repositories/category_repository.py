"""
Category Repository Interface.
Read-only lookups of category configuration.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from shiftbook.domain.models.category import ShiftBookCategory
from shiftbook.domain.models.teams_channel import TeamsChannel
from shiftbook.domain.repositories.base import BaseRepository


class CategoryRepository(BaseRepository[ShiftBookCategory]):
    """Interface for category configuration lookups."""

    def get_category(self, category_id: str, plant: str) -> Optional[ShiftBookCategory]:
        """Get a category of a plant."""
        ...

    def get_teams_channel(self, category_id: str) -> Optional[TeamsChannel]:
        """Teams channel of a category, regardless of plant."""
        ...

    def get_mail_recipients(self, category_id: str, plant: str) -> List[str]:
        """Mail list of a category in a plant."""
        ...

    def get_destination_workcenters(self, category_id: str) -> List[str]:
        """Workcenters that receive every new log of the category."""
        ...

    def get_translations(
        self,
        category_ids: Iterable[str],
        plant: str,
        languages: Iterable[str],
    ) -> Dict[Tuple[str, str], str]:
        """(category_id, LANGUAGE) -> description for all given categories and languages."""
        ...
