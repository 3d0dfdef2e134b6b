"""
Unit tests for UserDirectory.
Tests batched name resolution, the cache layer and the fallback name.
"""
from marketchat.config import settings
from marketchat.models.base import generate_uuid
from marketchat.repositories.user_repo import UserRepository
from marketchat.services.user_directory import UserDirectory


class TestUserDirectory:
    """Test display name resolution."""

    async def test_resolves_names_in_one_query(self, db_session, buyer, seller, mocker):
        """Test several users are resolved with a single directory lookup."""
        lookup = mocker.spy(UserRepository, "get_profiles")

        names = await UserDirectory(db_session).get_display_names([buyer.id, seller.id, buyer.id])

        assert names == {buyer.id: "Alice Buyer", seller.id: "Sam Seller"}
        assert lookup.call_count == 1

    async def test_fallback_name(self, db_session, stranger):
        """Test users without a name, and unknown users, get the fallback."""
        unknown = generate_uuid()
        directory = UserDirectory(db_session)

        assert await directory.get_display_name(stranger.id) == "User"
        assert await directory.get_display_name(unknown) == "User"

    async def test_configured_fallback(self, db_session, stranger):
        config = settings.model_copy(update={"default_display_name": "Marketplace member"})

        assert await UserDirectory(db_session, config).get_display_name(stranger.id) == "Marketplace member"

    async def test_cache_hits_skip_database(self, db_session, buyer, mocker):
        """Test cached entries are served without querying the directory."""
        mocker.patch(
            "marketchat.services.user_directory.get_cached_display_names",
            mocker.AsyncMock(return_value={buyer.id: {"display_name": "Cached Alice", "avatar_url": None}}),
        )
        lookup = mocker.spy(UserRepository, "get_profiles")

        assert await UserDirectory(db_session).get_display_name(buyer.id) == "Cached Alice"
        lookup.assert_not_called()

    async def test_misses_are_written_back(self, db_session, buyer, stranger, mocker):
        """Test only users found in the directory are cached."""
        unknown = generate_uuid()
        write = mocker.patch(
            "marketchat.services.user_directory.cache_display_names",
            mocker.AsyncMock(return_value=True),
        )

        entries = await UserDirectory(db_session).get_entries([buyer.id, stranger.id, unknown])

        assert entries[buyer.id].avatar_url == "https://cdn.example.com/alice.png"
        cached = write.call_args.args[0]
        assert set(cached) == {buyer.id, stranger.id}
        assert cached[buyer.id] == {
            "display_name": "Alice Buyer",
            "avatar_url": "https://cdn.example.com/alice.png",
        }

    async def test_empty_input(self, db_session):
        assert await UserDirectory(db_session).get_entries([]) == {}
