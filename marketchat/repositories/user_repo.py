"""
User repository.
Read-only, batched access to the user directory.
"""
from typing import Dict, Iterable, NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.models.user import User
from marketchat.repositories.base import BaseRepository


class UserProfile(NamedTuple):
    display_name: Optional[str]
    avatar_url: Optional[str]


class UserRepository(BaseRepository[User]):
    """Repository for user directory lookups."""

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def get_profiles(self, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        """
        Get display name and avatar for many users in one query.

        Args:
            user_ids: User IDs

        Returns:
            Mapping of user ID to UserProfile (unknown IDs are absent)
        """
        user_ids = list(set(user_ids))
        if not user_ids:
            return {}

        result = await self.db.execute(
            select(User.id, User.display_name, User.avatar_url).where(User.id.in_(user_ids))
        )
        return {
            row.id: UserProfile(display_name=row.display_name, avatar_url=row.avatar_url)
            for row in result.all()
        }
