"""Shared fixtures for common app tests."""

from datetime import timedelta

import pytest
from django.utils import timezone

from common.models import ActivityEvent


@pytest.fixture
def make_activity_event(db):
    """Factory fixture to create ActivityEvent instances."""

    def _make(
        event_type=ActivityEvent.EventType.UPLOAD,
        description="File report.pdf added",
        days_old=0,
        **fields,
    ):
        event = ActivityEvent.objects.create(
            event_type=event_type, description=description, **fields
        )
        if days_old > 0:
            old_time = timezone.now() - timedelta(days=days_old)
            ActivityEvent.objects.filter(pk=event.pk).update(created_at=old_time)
            event.refresh_from_db()
        return event

    return _make
