"""Tests for the preference resolver."""

from uuid import uuid4

import pytest
from sqlmodel import Session

from reminder_service.errors import NotFoundError, ValidationError
from reminder_service.models.reminder import DeliveryChannels, DeliveryChannelsUpdate, ReminderType
from reminder_service.services.preferences import (
    SYSTEM_DEFAULT_REMINDER_TIMES,
    PreferenceResolver,
)


@pytest.fixture
def resolver(clock) -> PreferenceResolver:
    return PreferenceResolver(clock=clock)


class TestResolve:
    """Tests for PreferenceResolver.resolve."""

    def test_system_defaults_without_stored_preferences(self, resolver, db_session: Session, test_user):
        prefs = resolver.resolve(db_session, test_user.id)

        assert prefs.default_delivery_channels == DeliveryChannels(in_app=True, email=True, push=False)
        assert prefs.default_reminder_times == {
            ReminderType.TASK_DUE: 60,
            ReminderType.MEETING: 30,
            ReminderType.GOAL_DEADLINE: 1440,
            ReminderType.APPRAISAL_SUBMISSION: 1440,
            ReminderType.MANAGER_FEEDBACK: 720,
            ReminderType.CUSTOM: 60,
        }

    def test_stored_entries_override_per_key(self, resolver, db_session: Session, test_user):
        """Stored values win key by key; missing keys keep the defaults."""
        test_user.reminder_preferences = {
            "default_delivery_channels": {"push": True},
            "default_reminder_times": {"meeting": 15},
        }
        db_session.add(test_user)
        db_session.commit()

        prefs = resolver.resolve(db_session, test_user.id)

        assert prefs.default_delivery_channels == DeliveryChannels(in_app=True, email=True, push=True)
        assert prefs.lead_time_minutes(ReminderType.MEETING) == 15
        assert prefs.lead_time_minutes(ReminderType.TASK_DUE) == 60

    def test_unknown_stored_type_ignored(self, resolver, db_session: Session, test_user):
        test_user.reminder_preferences = {"default_reminder_times": {"birthday": 5}}
        db_session.add(test_user)
        db_session.commit()

        prefs = resolver.resolve(db_session, test_user.id)

        assert prefs.default_reminder_times == SYSTEM_DEFAULT_REMINDER_TIMES

    def test_unknown_user(self, resolver, db_session: Session):
        with pytest.raises(NotFoundError):
            resolver.resolve(db_session, uuid4())


class TestUpdate:
    """Tests for PreferenceResolver.update."""

    def test_update_persists_and_resolves(self, resolver, db_session: Session, test_user):
        prefs = resolver.update(
            db_session,
            test_user.id,
            default_delivery_channels=DeliveryChannelsUpdate(email=False),
            default_reminder_times={"task_due": 0, ReminderType.GOAL_DEADLINE: 2880},
        )

        assert prefs.default_delivery_channels.email is False
        assert prefs.lead_time_minutes(ReminderType.TASK_DUE) == 0
        assert prefs.lead_time_minutes(ReminderType.GOAL_DEADLINE) == 2880

        db_session.refresh(test_user)
        assert test_user.reminder_preferences["default_reminder_times"]["goal_deadline"] == 2880

    @pytest.mark.parametrize(
        "times",
        [{"birthday": 10}, {"meeting": -1}, {"meeting": 1.5}, {"meeting": True}, {"meeting": "10"}],
    )
    def test_update_rejects_invalid_times(self, resolver, db_session: Session, test_user, times):
        with pytest.raises(ValidationError):
            resolver.update(db_session, test_user.id, default_reminder_times=times)

    def test_update_unknown_user(self, resolver, db_session: Session):
        with pytest.raises(NotFoundError):
            resolver.update(db_session, uuid4())
