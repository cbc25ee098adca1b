"""
Restaurant model.

The referred business. Its intake fields are the FIT signals of the lead
score; its owner is the REFERRED-side reward beneficiary.
"""

from datetime import UTC, datetime

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referrals.models.base import Base
from referrals.models.types import UTCDateTime


class Restaurant(Base):
    """
    Restaurant entity.

    Rows are written by the registration flow; the referral core only
    reads them.

    Attributes:
        id: Primary key
        owner_id: User who owns the restaurant
        name: Display name
        city: City as typed at registration
        num_locations: Number of locations
        current_pos: Point-of-sale system in use
        delivery_pct: Share of sales through delivery (0-100)
        owner_whatsapp: Contact phone
        owner_email: Contact email
        created_at: Registration time
    """

    __tablename__ = "restaurants"
    __table_args__ = (Index("idx_restaurants_owner", "owner_id"),)

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Intake (FIT) fields
    city: Mapped[str | None] = mapped_column(String(100), nullable=True)
    num_locations: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_pos: Mapped[str | None] = mapped_column(String(100), nullable=True)
    delivery_pct: Mapped[int | None] = mapped_column(Integer, nullable=True)
    owner_whatsapp: Mapped[str | None] = mapped_column(String(20), nullable=True)
    owner_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Restaurant(id={self.id}, owner_id={self.owner_id}, name={self.name!r})>"
