"""Reminder API endpoints.

Thin translators: each endpoint calls one ReminderService operation for
the authenticated user. Service errors are mapped to HTTP statuses by the
exception handlers registered in main.py.
"""

from uuid import UUID

from fastapi import APIRouter, Query, status

from reminder_service.api.deps import CurrentUser, DBSession, Reminders
from reminder_service.models.reminder import (
    ReminderCreate,
    ReminderListResponse,
    ReminderResponse,
    ReminderStatus,
    ReminderUpdate,
    SnoozeRequest,
)
from reminder_service.models.user import PreferencesUpdate, ReminderPreferences

router = APIRouter(prefix="/api/reminders", tags=["Reminders"])


@router.post("", response_model=ReminderResponse, status_code=status.HTTP_201_CREATED)
def create_reminder_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    reminder_data: ReminderCreate,
) -> ReminderResponse:
    """Create a reminder for the authenticated user."""
    reminder = service.create_reminder(
        session,
        owner_id=current_user.id,
        reminder_type=reminder_data.type,
        message=reminder_data.message,
        remind_at=reminder_data.remind_at,
        target=reminder_data.target,
        delivery_channels=reminder_data.delivery_channels,
        created_by=current_user.id,
    )
    return ReminderResponse.model_validate(reminder)


@router.get("", response_model=ReminderListResponse)
def list_reminders_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    status_filter: ReminderStatus | None = Query(default=None, alias="status"),
    page: int = Query(default=1, description="Page number, starting at 1"),
    limit: int = Query(default=10, description="Reminders per page"),
) -> ReminderListResponse:
    """List the authenticated user's reminders."""
    reminders = service.list_reminders(session, current_user.id, status_filter, page, limit)
    return ReminderListResponse(
        reminders=[ReminderResponse.model_validate(r) for r in reminders],
        page=page,
        limit=limit,
    )


# Declared before /{reminder_id} so the literal path wins
@router.get("/preferences", response_model=ReminderPreferences)
def get_preferences_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
) -> ReminderPreferences:
    """Get the user's resolved reminder preferences."""
    return service.get_preferences(session, current_user.id)


@router.put("/preferences", response_model=ReminderPreferences)
def update_preferences_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    preferences_data: PreferencesUpdate,
) -> ReminderPreferences:
    """Replace the user's reminder preferences."""
    return service.update_preferences(
        session,
        current_user.id,
        default_delivery_channels=preferences_data.default_delivery_channels,
        default_reminder_times=preferences_data.default_reminder_times,
    )


@router.put("/{reminder_id}", response_model=ReminderResponse)
def update_reminder_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    reminder_id: UUID,
    reminder_data: ReminderUpdate,
) -> ReminderResponse:
    """Edit a pending or snoozed reminder."""
    reminder = service.update_reminder(
        session,
        reminder_id,
        current_user.id,
        message=reminder_data.message,
        delivery_channels=reminder_data.delivery_channels,
        remind_at=reminder_data.remind_at,
    )
    return ReminderResponse.model_validate(reminder)


@router.delete("/{reminder_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_reminder_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    reminder_id: UUID,
) -> None:
    """Delete a reminder."""
    service.delete_reminder(session, reminder_id, current_user.id)


@router.post("/{reminder_id}/snooze", response_model=ReminderResponse)
def snooze_reminder_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    reminder_id: UUID,
    snooze_data: SnoozeRequest,
) -> ReminderResponse:
    """Snooze a reminder by 5 to 1440 minutes."""
    reminder = service.snooze(session, reminder_id, current_user.id, snooze_data.snooze_minutes)
    return ReminderResponse.model_validate(reminder)


@router.post("/{reminder_id}/dismiss", response_model=ReminderResponse)
def dismiss_reminder_endpoint(
    session: DBSession,
    current_user: CurrentUser,
    service: Reminders,
    reminder_id: UUID,
) -> ReminderResponse:
    """Dismiss a reminder."""
    reminder = service.dismiss(session, reminder_id, current_user.id)
    return ReminderResponse.model_validate(reminder)
