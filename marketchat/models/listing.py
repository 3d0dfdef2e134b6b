"""
Listing and ListingImage models - read-only view of the listing store.

Listing CRUD and image upload live in the surrounding application.
Conversations only need a listing's seller, status, title and cover image.
"""
from datetime import datetime
from typing import List

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from marketchat.models.base import Base, UUIDMixin
from marketchat.utils.datetime_utils import utc_now


class Listing(Base, UUIDMixin):
    """A marketplace listing owned by a seller."""

    __tablename__ = "listings"

    seller_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Current seller of the listing"
    )

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False
    )

    status: Mapped[str] = mapped_column(
        String(32),
        default="active",
        nullable=False,
        doc="Listing status as maintained by the listing store"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False
    )

    images: Mapped[List["ListingImage"]] = relationship(
        back_populates="listing",
        cascade="all, delete-orphan",
        order_by="ListingImage.position",
        lazy="select"
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title})>"


class ListingImage(Base, UUIDMixin):
    """An image attached to a listing; the lowest position is the cover."""

    __tablename__ = "listing_images"

    listing_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False
    )

    image_path: Mapped[str] = mapped_column(
        String(500),
        nullable=False
    )

    position: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False
    )

    listing: Mapped["Listing"] = relationship(back_populates="images")

    def __repr__(self) -> str:
        return f"<ListingImage(listing_id={self.listing_id}, position={self.position})>"


Index("idx_listing_images_listing_position", ListingImage.listing_id, ListingImage.position)
