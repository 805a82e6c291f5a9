"""Unit tests for the consumption loop and acknowledgment."""

import threading
from unittest.mock import Mock

import pika
import pytest
from pika.exceptions import AMQPChannelError, ChannelClosedByBroker, StreamLostError

from app.config.models import BrokerConfig
from app.messaging.consumer import NotificationConsumer
from app.messaging.exceptions import BrokerConnectionError
from app.messaging.handler import MessageHandler
from app.messaging.models import DeliveryOutcome


class InstantEvent(threading.Event):
    """Event whose timed waits return immediately and are recorded."""

    def __init__(self):
        super().__init__()
        self.waits = []

    def wait(self, timeout=None):
        self.waits.append(timeout)
        return self.is_set()


def make_manager(**broker_overrides):
    manager = Mock()
    manager.broker_config = BrokerConfig(**broker_overrides)
    manager.queue_name = "notifications.delivery"
    manager.connection = Mock()
    manager.connect.return_value = Mock(name="channel")
    return manager


def delivery(tag, redelivered=False):
    return Mock(delivery_tag=tag, redelivered=redelivered)


@pytest.fixture
def handler():
    handler = Mock()
    handler.handle.return_value = DeliveryOutcome.DELIVERED
    return handler


class TestSettlement:
    """Each delivery is acked or nacked once by its own tag."""

    def test_delivered_is_acked(self, handler):
        manager = make_manager()
        consumer = NotificationConsumer(manager, handler)
        channel = Mock()

        consumer._on_message(channel, delivery(5), pika.BasicProperties(message_id="m-1"), b"{}")

        handler.handle.assert_called_once_with(b"{}", 5, message_id="m-1", redelivered=False)
        channel.basic_ack.assert_called_once_with(delivery_tag=5, multiple=False)
        channel.basic_nack.assert_not_called()

    def test_permanent_rejection_is_acked(self, handler):
        handler.handle.return_value = DeliveryOutcome.REJECTED_PERMANENT
        consumer = NotificationConsumer(make_manager(), handler)
        channel = Mock()

        consumer._on_message(channel, delivery(6), pika.BasicProperties(), b"junk")

        channel.basic_ack.assert_called_once_with(delivery_tag=6, multiple=False)
        channel.basic_nack.assert_not_called()

    def test_transient_failure_is_nacked_without_requeue(self, handler):
        handler.handle.return_value = DeliveryOutcome.REJECTED_TRANSIENT
        consumer = NotificationConsumer(make_manager(), handler)
        channel = Mock()

        consumer._on_message(channel, delivery(7), pika.BasicProperties(), b"{}")

        channel.basic_nack.assert_called_once_with(delivery_tag=7, multiple=False, requeue=False)
        channel.basic_ack.assert_not_called()

    def test_requeue_policy_is_configurable(self, handler):
        handler.handle.return_value = DeliveryOutcome.REJECTED_TRANSIENT
        consumer = NotificationConsumer(
            make_manager(requeue_on_delivery_failure=True), handler
        )
        channel = Mock()

        consumer._on_message(channel, delivery(8), pika.BasicProperties(), b"{}")

        channel.basic_nack.assert_called_once_with(delivery_tag=8, multiple=False, requeue=True)

    def test_redelivered_flag_passed_to_handler(self, handler):
        consumer = NotificationConsumer(make_manager(), handler)

        consumer._on_message(Mock(), delivery(9, redelivered=True), pika.BasicProperties(), b"{}")

        assert handler.handle.call_args.kwargs["redelivered"] is True

    def test_outcomes_are_counted(self, handler):
        handler.handle.side_effect = [
            DeliveryOutcome.DELIVERED,
            DeliveryOutcome.REJECTED_TRANSIENT,
            DeliveryOutcome.DELIVERED,
        ]
        consumer = NotificationConsumer(make_manager(), handler)

        for tag in (1, 2, 3):
            consumer._on_message(Mock(), delivery(tag), pika.BasicProperties(), b"{}")

        assert consumer.outcome_counts[DeliveryOutcome.DELIVERED] == 2
        assert consumer.outcome_counts[DeliveryOutcome.REJECTED_TRANSIENT] == 1


    def test_handler_crash_still_settles_delivery(self, handler):
        handler.handle.side_effect = RecursionError("maximum recursion depth exceeded")
        consumer = NotificationConsumer(make_manager(), handler)
        channel = Mock()

        consumer._on_message(channel, delivery(11), pika.BasicProperties(), b"[[[")

        channel.basic_ack.assert_called_once_with(delivery_tag=11, multiple=False)
        channel.basic_nack.assert_not_called()
        assert consumer.outcome_counts[DeliveryOutcome.REJECTED_PERMANENT] == 1

    def test_deeply_nested_body_is_acked_with_real_handler(self):
        notifier = Mock()
        consumer = NotificationConsumer(
            make_manager(), MessageHandler(notifier_factory=lambda: notifier)
        )
        channel = Mock()

        consumer._on_message(
            channel, delivery(12), pika.BasicProperties(), b'{"type":' + b"[" * 200000
        )

        channel.basic_ack.assert_called_once_with(delivery_tag=12, multiple=False)
        assert notifier.method_calls == []

class TestRun:
    """Tests for the consume / recover / shutdown loop."""

    def test_consumes_with_manual_ack_until_shutdown(self, handler):
        manager = make_manager(prefetch_count=3, poll_interval="2s")
        channel = manager.connect.return_value
        shutdown = InstantEvent()
        manager.connection.process_data_events.side_effect = lambda time_limit: shutdown.set()
        consumer = NotificationConsumer(manager, handler)

        consumer.run(shutdown)

        channel.basic_qos.assert_called_once_with(prefetch_count=3)
        channel.basic_consume.assert_called_once_with(
            queue="notifications.delivery",
            on_message_callback=consumer._on_message,
            auto_ack=False,
        )
        manager.connection.process_data_events.assert_called_once_with(time_limit=2)
        channel.basic_cancel.assert_called_once_with(channel.basic_consume.return_value)
        manager.mark_consuming.assert_called_once()
        manager.close.assert_called_once()

    def test_does_not_connect_when_already_stopped(self, handler):
        manager = make_manager()
        shutdown = InstantEvent()
        shutdown.set()

        NotificationConsumer(manager, handler).run(shutdown)

        manager.connect.assert_not_called()
        manager.close.assert_called_once()

    def test_startup_connection_failure_is_fatal(self, handler):
        manager = make_manager()
        manager.connect.side_effect = BrokerConnectionError(
            "gave up", address="rabbitmq.internal:5672", attempts=20
        )

        with pytest.raises(BrokerConnectionError):
            NotificationConsumer(manager, handler).run(InstantEvent())

        manager.close.assert_called_once()

    @pytest.mark.parametrize(
        "error",
        [StreamLostError("connection reset"), ChannelClosedByBroker(320, "CONNECTION_FORCED")],
    )
    def test_recovers_after_broker_closure(self, handler, error):
        manager = make_manager(recovery_interval="10s")
        shutdown = InstantEvent()
        calls = {"count": 0}

        def process_data_events(time_limit):
            calls["count"] += 1
            if calls["count"] == 1:
                raise error
            shutdown.set()

        manager.connection.process_data_events.side_effect = process_data_events

        NotificationConsumer(manager, handler).run(shutdown)

        assert manager.connect.call_count == 2
        manager.mark_disconnected.assert_called_once()
        assert shutdown.waits == [10]
        manager.close.assert_called_once()

    def test_recovery_connect_failure_is_fatal(self, handler):
        manager = make_manager()
        manager.connect.side_effect = [
            manager.connect.return_value,
            BrokerConnectionError("gave up", address="rabbitmq.internal:5672", attempts=20),
        ]
        manager.connection.process_data_events.side_effect = StreamLostError("reset")

        with pytest.raises(BrokerConnectionError):
            NotificationConsumer(manager, handler).run(InstantEvent())

        assert manager.connect.call_count == 2
        manager.close.assert_called_once()

    def test_cancel_failure_does_not_escape(self, handler):
        manager = make_manager()
        channel = manager.connect.return_value
        channel.basic_cancel.side_effect = AMQPChannelError("closed")
        shutdown = InstantEvent()
        manager.connection.process_data_events.side_effect = lambda time_limit: shutdown.set()

        NotificationConsumer(manager, handler).run(shutdown)

        manager.close.assert_called_once()

    def test_queue_name_comes_from_connection_manager(self, handler):
        assert NotificationConsumer(make_manager(), handler).queue_name == "notifications.delivery"
