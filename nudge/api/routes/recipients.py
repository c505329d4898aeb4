"""Recipient preference and inbox endpoints."""

from fastapi import APIRouter

from nudge.agent.channels import InboxMessage
from nudge.agent.models import RecipientPreferences
from nudge.api.dependencies import InboxDep, PreferenceStoreDep
from nudge.api.models.recipients import PreferencesUpdate
from nudge.observability.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/recipients/{recipient_id}")


@router.get("/preferences", response_model=RecipientPreferences)
async def get_preferences(
    recipient_id: str,
    store: PreferenceStoreDep,
) -> RecipientPreferences:
    """Stored preferences, or the defaults when none were saved."""
    preferences = await store.get(recipient_id)
    return preferences or RecipientPreferences(recipient_id=recipient_id)


@router.put("/preferences", response_model=RecipientPreferences)
async def put_preferences(
    recipient_id: str,
    request: PreferencesUpdate,
    store: PreferenceStoreDep,
) -> RecipientPreferences:
    """Replace a recipient's preferences."""
    logger.info("preferences_update_request", recipient_id=recipient_id)

    preferences = RecipientPreferences(
        recipient_id=recipient_id,
        **request.model_dump(exclude_none=True),
    )
    await store.save(preferences)
    return preferences


@router.get("/inbox", response_model=list[InboxMessage])
async def get_inbox(recipient_id: str, inbox: InboxDep) -> list[InboxMessage]:
    """In-app messages for a recipient, oldest first."""
    return inbox.inbox(recipient_id)
