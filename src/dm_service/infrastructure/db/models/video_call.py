from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from dm_service.domain.call_lifecycle import ACTIVE_STATUSES
from dm_service.domain.value_objects.enums import CallStatus
from dm_service.infrastructure.db.base import Base

ACTIVE_CALL_INDEX = "uq_video_calls_one_active_per_conversation"

_ALL = ", ".join(f"'{s}'" for s in CallStatus)
_ACTIVE = ", ".join(f"'{s}'" for s in sorted(ACTIVE_STATUSES))
ACTIVE_PREDICATE = text(f"status IN ({_ACTIVE})")


class VideoCallModel(Base):
    __tablename__ = "video_calls"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )
    conversation_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    room_name: Mapped[str] = mapped_column(String(255), nullable=False)
    caller_party_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("parties.id", ondelete="CASCADE"), nullable=False
    )
    caller_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    callee_party_id: Mapped[str] = mapped_column(
        String(64), ForeignKey("parties.id", ondelete="CASCADE"), nullable=False
    )
    callee_user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CallStatus.INITIATING,
        server_default=text(f"'{CallStatus.INITIATING}'"),
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    accepted_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    ended_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    end_reason: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        CheckConstraint(f"status IN ({_ALL})", name="ck_video_calls_status"),
        # At most one call rings or runs per conversation; concurrent starters lose here.
        Index(
            ACTIVE_CALL_INDEX,
            "conversation_id",
            unique=True,
            postgresql_where=ACTIVE_PREDICATE,
        ),
        Index("ix_video_calls_callee_user", "callee_user_id", "status"),
        Index("ix_video_calls_caller_user", "caller_user_id", "status"),
        Index("ix_video_calls_status_created", "status", "created_at"),
    )
