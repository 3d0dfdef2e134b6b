"""
User directory service.
Resolves display names and avatars in batches, backed by the Redis cache.
"""
import logging
from typing import Dict, Iterable, NamedTuple, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.config import Settings, settings as default_settings
from marketchat.core.cache import cache_display_names, get_cached_display_names
from marketchat.core.exceptions import translate_storage_errors
from marketchat.repositories.user_repo import UserRepository

logger = logging.getLogger(__name__)


class DirectoryEntry(NamedTuple):
    display_name: str
    avatar_url: Optional[str]


class UserDirectory:
    """Batched, cached view of the user directory."""

    def __init__(self, db: AsyncSession, config: Optional[Settings] = None):
        self.db = db
        self.settings = config or default_settings
        self.user_repo = UserRepository(db)

    @translate_storage_errors
    async def get_entries(self, user_ids: Iterable[str]) -> Dict[str, DirectoryEntry]:
        """
        Resolve directory entries for many users.

        Cache hits are served from Redis; all misses are fetched with a single
        ``IN (...)`` query and written back. Unknown users and users without a
        display name get the configured fallback name.

        Args:
            user_ids: User IDs (duplicates allowed)

        Returns:
            Mapping with an entry for every requested ID
        """
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}

        entries: Dict[str, DirectoryEntry] = {}
        for user_id, cached in (await get_cached_display_names(ids)).items():
            entries[user_id] = DirectoryEntry(
                display_name=cached.get("display_name") or self.settings.default_display_name,
                avatar_url=cached.get("avatar_url"),
            )

        missing = [uid for uid in ids if uid not in entries]
        if missing:
            profiles = await self.user_repo.get_profiles(missing)
            fetched = {}
            for user_id in missing:
                profile = profiles.get(user_id)
                if profile is None:
                    logger.debug("User %s not in directory, using fallback name", user_id)
                entries[user_id] = DirectoryEntry(
                    display_name=(profile.display_name if profile else None)
                    or self.settings.default_display_name,
                    avatar_url=profile.avatar_url if profile else None,
                )
                if profile is not None:
                    fetched[user_id] = {
                        "display_name": profile.display_name,
                        "avatar_url": profile.avatar_url,
                    }
            await cache_display_names(fetched)

        return entries

    async def get_display_names(self, user_ids: Iterable[str]) -> Dict[str, str]:
        """Resolve display names for many users in one batched lookup."""
        entries = await self.get_entries(user_ids)
        return {user_id: entry.display_name for user_id, entry in entries.items()}

    async def get_display_name(self, user_id: str) -> str:
        """Resolve a single user's display name."""
        return (await self.get_display_names([user_id]))[user_id]
