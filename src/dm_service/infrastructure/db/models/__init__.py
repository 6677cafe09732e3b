"""Import all models so Base.metadata knows every table."""
from dm_service.infrastructure.db.models.conversation import ConversationModel
from dm_service.infrastructure.db.models.message import MessageModel
from dm_service.infrastructure.db.models.outbox import OutboxMessageModel
from dm_service.infrastructure.db.models.participant import ParticipantModel
from dm_service.infrastructure.db.models.party import PartyModel
from dm_service.infrastructure.db.models.video_call import VideoCallModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "OutboxMessageModel",
    "ParticipantModel",
    "PartyModel",
    "VideoCallModel",
]
