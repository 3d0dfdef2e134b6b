"""
Listing repository.
Read-only access to the listing store for seller resolution and inbox context.
"""
from typing import Dict, Iterable, NamedTuple, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from marketchat.models.listing import Listing, ListingImage
from marketchat.repositories.base import BaseRepository


class ListingOwnership(NamedTuple):
    seller_id: str
    status: str


class ListingSummary(NamedTuple):
    title: str
    image_url: Optional[str]


class ListingRepository(BaseRepository[Listing]):
    """Repository for listing lookups."""

    def __init__(self, db: AsyncSession):
        super().__init__(Listing, db)

    async def get_seller_and_status(self, listing_id: str) -> Optional[ListingOwnership]:
        """
        Resolve a listing's current seller and status.

        Args:
            listing_id: Listing ID

        Returns:
            ListingOwnership or None if the listing does not exist
        """
        result = await self.db.execute(
            select(Listing.seller_id, Listing.status).where(Listing.id == listing_id)
        )
        row = result.one_or_none()
        if row is None:
            return None
        return ListingOwnership(seller_id=row.seller_id, status=row.status)

    async def get_summaries(self, listing_ids: Iterable[str]) -> Dict[str, ListingSummary]:
        """
        Get title and cover image for many listings.

        Two queries regardless of how many listings are requested: one for
        titles, one for images ordered so the first row per listing is its cover.

        Returns:
            Mapping of listing ID to ListingSummary (unknown IDs are absent)
        """
        listing_ids = list(set(listing_ids))
        if not listing_ids:
            return {}

        titles = await self.db.execute(
            select(Listing.id, Listing.title).where(Listing.id.in_(listing_ids))
        )

        images = await self.db.execute(
            select(ListingImage.listing_id, ListingImage.image_path)
            .where(ListingImage.listing_id.in_(listing_ids))
            .order_by(ListingImage.listing_id, ListingImage.position, ListingImage.id)
        )
        covers: Dict[str, str] = {}
        for row in images.all():
            covers.setdefault(row.listing_id, row.image_path)

        return {
            row.id: ListingSummary(title=row.title, image_url=covers.get(row.id))
            for row in titles.all()
        }
