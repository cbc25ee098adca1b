"""
PipelineEvent model.

Append-only audit row of a referral's timeline.
"""

from datetime import UTC, datetime

from sqlalchemy import ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from referrals.models.base import Base
from referrals.models.types import UTCDateTime


class PipelineEvent(Base):
    """
    PipelineEvent entity.

    Attributes:
        id: Primary key
        referral_id: Referral the event belongs to
        event_type: PipelineEventType value
        from_status: Pipeline status before a transition
        to_status: Pipeline status after a transition
        note: Free text
        created_by: Acting user (None for automatic events)
        created_at: Event time
    """

    __tablename__ = "pipeline_events"
    __table_args__ = (
        Index("idx_pipeline_events_referral_created", "referral_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referral_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("referrals.id", ondelete="RESTRICT"),
        nullable=False,
    )
    event_type: Mapped[str] = mapped_column(String(30), nullable=False)
    from_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    to_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime,
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<PipelineEvent(id={self.id}, referral_id={self.referral_id}, "
            f"event_type={self.event_type})>"
        )
