"""Unit tests for infrastructure event models."""

import dataclasses
from datetime import datetime
from uuid import UUID

import pytest

from infrastructure.events.models import Event

pytestmark = pytest.mark.unit


class TestEvent:
    """Tests for the Event record."""

    def test_event_creation_with_all_fields(self, event_factory):
        event = event_factory(event_type="test.action", metadata={"key": "value"})

        assert event.event_type == "test.action"
        assert event.metadata == {"key": "value"}
        assert isinstance(event.timestamp, datetime)
        assert isinstance(event.correlation_id, UUID)

    def test_event_creation_with_defaults(self):
        event = Event(event_type="test.event")

        assert event.metadata == {}
        assert event.timestamp.tzinfo is not None
        assert event.correlation_id is not None

    def test_default_correlation_ids_are_unique(self):
        assert Event("a").correlation_id != Event("a").correlation_id

    def test_event_to_dict_serialization(self, event_factory):
        event = event_factory(metadata={"user_ids": ["u1"]})

        event_dict = event.to_dict()

        assert event_dict["event_type"] == "test.event"
        assert event_dict["metadata"] == {"user_ids": ["u1"]}
        assert event_dict["timestamp"] == event.timestamp.isoformat()
        assert event_dict["correlation_id"] == str(event.correlation_id)

    def test_event_is_immutable(self, event_factory):
        event = event_factory()

        with pytest.raises(dataclasses.FrozenInstanceError):
            event.event_type = "changed"
