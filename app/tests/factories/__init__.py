"""Test data factories for deterministic test data generation."""

from tests.factories.message_notifications import (
    make_message,
    make_receiver,
    make_room,
    make_subscription,
    make_subscriptions,
    make_user,
)

__all__ = [
    "make_message",
    "make_receiver",
    "make_room",
    "make_subscription",
    "make_subscriptions",
    "make_user",
]
