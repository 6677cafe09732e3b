from __future__ import annotations

from dm_service.domain.entities.party import Party
from dm_service.infrastructure.db.models.party import PartyModel


def model_to_entity(model: PartyModel) -> Party:
    return Party(
        id=model.id,
        owner_user_id=model.owner_user_id,
        display_name=model.display_name,
        is_active=model.is_active,
        created_at=model.created_at,
    )
