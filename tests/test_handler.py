"""Unit tests for per-message handling and outcome decisions."""

import json
import logging
from unittest.mock import Mock

import pytest

from app.logging.context import get_log_context
from app.messaging.handler import MessageHandler
from app.messaging.models import DeliveryOutcome
from app.notifications.base import Notifier
from app.notifications.models import InvalidArgumentError, SMTPDeliveryError


def encode(document) -> bytes:
    return json.dumps(document).encode("utf-8")


@pytest.fixture
def notifier():
    return Mock(spec=Notifier)


@pytest.fixture
def handler(notifier):
    return MessageHandler(notifier_factory=lambda: notifier)


class TestMessageHandler:
    """Outcome for each class of message."""

    def test_valid_password_reset_is_delivered(self, handler, notifier):
        body = encode(
            {
                "type": "password_reset",
                "email": "ana@example.com",
                "userName": "Ana",
                "additionalData": {"resetToken": "abc"},
            }
        )

        outcome = handler.handle(body, delivery_tag=1)

        assert outcome is DeliveryOutcome.DELIVERED
        assert outcome.acknowledges
        notifier.send_password_reset.assert_called_once_with("ana@example.com", "Ana", "abc")

    def test_malformed_json_is_rejected_permanently(self, handler, notifier):
        outcome = handler.handle(b"{not json", delivery_tag=2)

        assert outcome is DeliveryOutcome.REJECTED_PERMANENT
        assert outcome.acknowledges
        assert notifier.method_calls == []

    def test_deeply_nested_json_is_rejected_permanently(self, handler, notifier):
        outcome = handler.handle(b"[" * 200000 + b"]" * 200000, delivery_tag=2)

        assert outcome is DeliveryOutcome.REJECTED_PERMANENT
        assert notifier.method_calls == []

    def test_missing_email_is_rejected_permanently(self, handler, notifier):
        outcome = handler.handle(encode({"type": "user_welcome", "userName": "Bob"}), delivery_tag=3)

        assert outcome is DeliveryOutcome.REJECTED_PERMANENT
        assert notifier.method_calls == []

    def test_unknown_type_is_rejected_permanently(self, handler, notifier, caplog):
        with caplog.at_level(logging.WARNING):
            outcome = handler.handle(
                encode({"type": "newsletter", "email": "bob@example.com"}), delivery_tag=4
            )

        assert outcome is DeliveryOutcome.REJECTED_PERMANENT
        assert notifier.method_calls == []
        assert "Unknown notification type: 'newsletter'" in caplog.text

    def test_delivery_failure_is_transient(self, handler, notifier):
        notifier.send_welcome.side_effect = SMTPDeliveryError("relay unreachable")

        outcome = handler.handle(
            encode({"type": "user_welcome", "email": "bob@example.com"}), delivery_tag=5
        )

        assert outcome is DeliveryOutcome.REJECTED_TRANSIENT
        assert not outcome.acknowledges

    def test_invalid_argument_is_transient(self, handler, notifier):
        notifier.send_password_reset.side_effect = InvalidArgumentError(
            "Password reset token cannot be empty", argument="reset_token"
        )

        outcome = handler.handle(
            encode({"type": "password_reset", "email": "bob@example.com"}), delivery_tag=6
        )

        assert outcome is DeliveryOutcome.REJECTED_TRANSIENT

    def test_unexpected_error_is_contained(self, handler, notifier):
        notifier.send_password_updated_confirmation.side_effect = RuntimeError("boom")

        outcome = handler.handle(
            encode({"type": "password_updated", "email": "bob@example.com"}), delivery_tag=7
        )

        assert outcome is DeliveryOutcome.REJECTED_TRANSIENT

    def test_notifier_factory_failure_is_transient(self):
        def broken_factory():
            raise RuntimeError("templates missing")

        handler = MessageHandler(notifier_factory=broken_factory)

        outcome = handler.handle(
            encode({"type": "user_welcome", "email": "bob@example.com"}), delivery_tag=8
        )

        assert outcome is DeliveryOutcome.REJECTED_TRANSIENT

    def test_fresh_notifier_per_message(self):
        factory = Mock(side_effect=lambda: Mock(spec=Notifier))
        handler = MessageHandler(notifier_factory=factory)
        body = encode({"type": "password_updated", "email": "bob@example.com"})

        handler.handle(body, delivery_tag=1)
        handler.handle(body, delivery_tag=2)

        assert factory.call_count == 2

    def test_decode_failure_does_not_create_notifier(self):
        factory = Mock()
        handler = MessageHandler(notifier_factory=factory)

        handler.handle(b"[]", delivery_tag=1)

        factory.assert_not_called()


class TestMessageHandlerLogging:
    """Log context around message handling."""

    def test_delivered_event_logged_and_context_released(self, handler, caplog):
        with caplog.at_level(logging.INFO):
            handler.handle(
                encode({"type": "password_updated", "email": "bob@example.com"}),
                delivery_tag=11,
                message_id="msg-1",
            )

        delivered = [r for r in caplog.records if getattr(r, "event", None) == "message.delivered"]
        assert len(delivered) == 1
        assert delivered[0].component == "consumer"
        assert get_log_context() == {}

    def test_context_bound_during_delivery(self, notifier):
        seen = {}

        def capture(*args):
            seen.update(get_log_context())

        notifier.send_password_updated_confirmation.side_effect = capture
        handler = MessageHandler(notifier_factory=lambda: notifier)

        handler.handle(
            encode({"type": "password_updated", "email": "bob@example.com"}),
            delivery_tag=12,
            message_id="msg-2",
        )

        assert seen == {
            "delivery_tag": 12,
            "message_id": "msg-2",
            "kind": "password_updated",
            "recipient": "bob@example.com",
        }
        assert get_log_context() == {}

    def test_rejection_reason_logged(self, handler, caplog):
        with caplog.at_level(logging.WARNING):
            handler.handle(encode({"email": "bob@example.com"}), delivery_tag=13)

        rejected = [r for r in caplog.records if getattr(r, "event", None) == "message.rejected"]
        assert rejected[0].reason == "validation_error"
