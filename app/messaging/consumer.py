"""Consumption loop: receive deliveries, hand them to the handler, settle them."""

import threading
from collections import Counter

from pika.exceptions import AMQPChannelError, AMQPConnectionError, AMQPError

from app.logging import get_logger

from .connection import ConnectionManager
from .handler import MessageHandler
from .models import DeliveryOutcome

logger = get_logger(__name__, component="consumer")


class NotificationConsumer:
    """
    Pulls messages from the notification queue with manual acknowledgment.

    Each delivery is settled exactly once, by its own delivery tag, after the
    handler has decided its outcome. If the broker drops the connection the
    consumer waits ``recovery_interval`` and reconnects through the same
    bounded connect; deliveries that were never acknowledged are redelivered
    by the broker.
    """

    def __init__(self, connection_manager: ConnectionManager, message_handler: MessageHandler):
        """
        Initialize the consumer.

        Args:
            connection_manager: Owner of the broker connection and channel
            message_handler: Decides the outcome of each message
        """
        self.connection_manager = connection_manager
        self.message_handler = message_handler
        self.broker_config = connection_manager.broker_config
        self.outcome_counts: Counter = Counter()

    @property
    def queue_name(self) -> str:
        return self.connection_manager.queue_name

    def run(self, shutdown_event: threading.Event) -> None:
        """
        Consume until ``shutdown_event`` is set.

        Args:
            shutdown_event: Set by the owner to request a graceful stop

        Raises:
            BrokerConnectionError: If the broker cannot be reached within the
                configured attempts, at startup or while recovering
        """
        try:
            while not shutdown_event.is_set():
                channel = self.connection_manager.connect()

                try:
                    self._consume(channel, shutdown_event)
                except (AMQPConnectionError, AMQPChannelError) as e:
                    recovery = self.broker_config.recovery_interval_seconds
                    logger.error(
                        f"Lost RabbitMQ connection: {e!r}; reconnecting in {recovery} seconds",
                        extra={
                            "event": "consumer.connection_lost",
                            "error_type": type(e).__name__,
                            "recovery_interval_seconds": recovery,
                        },
                    )
                    self.connection_manager.mark_disconnected()
                    shutdown_event.wait(recovery)
        finally:
            self.connection_manager.close()
            logger.info(
                "Consumer stopped",
                extra={
                    "event": "consumer.stopped",
                    "delivered": self.outcome_counts[DeliveryOutcome.DELIVERED],
                    "rejected": self.outcome_counts[DeliveryOutcome.REJECTED_PERMANENT],
                    "failed": self.outcome_counts[DeliveryOutcome.REJECTED_TRANSIENT],
                },
            )

    def _consume(self, channel, shutdown_event: threading.Event) -> None:
        channel.basic_qos(prefetch_count=self.broker_config.prefetch_count)
        consumer_tag = channel.basic_consume(
            queue=self.queue_name,
            on_message_callback=self._on_message,
            auto_ack=False,
        )
        self.connection_manager.mark_consuming()

        logger.info(
            f"Waiting for messages on queue '{self.queue_name}'",
            extra={
                "event": "consumer.started",
                "queue": self.queue_name,
                "consumer_tag": consumer_tag,
                "prefetch_count": self.broker_config.prefetch_count,
            },
        )

        poll = self.broker_config.poll_interval_seconds
        connection = self.connection_manager.connection
        while not shutdown_event.is_set():
            connection.process_data_events(time_limit=poll)

        # Prefetched but undispatched deliveries are returned to the queue
        try:
            channel.basic_cancel(consumer_tag)
        except AMQPError as e:
            logger.warning(
                f"Could not cancel consumer {consumer_tag}: {e!r}",
                extra={"event": "consumer.cancel_failed", "error_type": type(e).__name__},
            )

    def _on_message(self, channel, method, properties, body: bytes) -> None:
        """pika ``on_message_callback``: process one delivery and settle it."""
        try:
            outcome = self.message_handler.handle(
                body,
                method.delivery_tag,
                message_id=getattr(properties, "message_id", None),
                redelivered=bool(method.redelivered),
            )
        except Exception as e:
            # The delivery tag must still be settled or the loop stalls on it
            logger.error(
                f"Unhandled error processing delivery {method.delivery_tag}: {e!r}",
                exc_info=True,
                extra={
                    "event": "message.handler_failed",
                    "delivery_tag": method.delivery_tag,
                    "error_type": type(e).__name__,
                },
            )
            outcome = DeliveryOutcome.REJECTED_PERMANENT
        self._settle(channel, method.delivery_tag, outcome)

    def _settle(self, channel, delivery_tag: int, outcome: DeliveryOutcome) -> None:
        self.outcome_counts[outcome] += 1

        if outcome.acknowledges:
            channel.basic_ack(delivery_tag=delivery_tag, multiple=False)
            logger.debug(
                f"Acknowledged delivery {delivery_tag}",
                extra={"event": "message.acked", "delivery_tag": delivery_tag, "outcome": outcome.value},
            )
            return

        requeue = self.broker_config.requeue_on_delivery_failure
        channel.basic_nack(delivery_tag=delivery_tag, multiple=False, requeue=requeue)
        logger.info(
            f"Negatively acknowledged delivery {delivery_tag} (requeue={requeue})",
            extra={"event": "message.nacked", "delivery_tag": delivery_tag, "requeue": requeue},
        )
