from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from dm_service.infrastructure.db.base import Base

PAIR_CONSTRAINT = "uq_conversation_pair"


class ConversationModel(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    party_low: Mapped[str] = mapped_column(
        String(64), ForeignKey("parties.id", ondelete="RESTRICT"), nullable=False
    )
    party_high: Mapped[str] = mapped_column(
        String(64), ForeignKey("parties.id", ondelete="RESTRICT"), nullable=False
    )
    created_by: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="direct")
    last_message_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
        onupdate=text("now()"),
    )

    participants = relationship("ParticipantModel", back_populates="conversation", lazy="noload")
    messages = relationship("MessageModel", back_populates="conversation", lazy="noload")

    __table_args__ = (
        # Sole arbiter for concurrent creators of the same pair.
        UniqueConstraint("party_low", "party_high", name=PAIR_CONSTRAINT),
        CheckConstraint("party_low < party_high", name="ck_conversations_ordered_pair"),
        Index("ix_conversations_party_high", "party_high"),
        Index("ix_conversations_last_message", last_message_at.desc()),
    )
