"""Per-message processing: decode, route, deliver, decide the outcome.

MessageHandler knows nothing about the broker. It turns one message body
into a DeliveryOutcome and never raises, which keeps a bad message from
taking the consumer down with it.
"""

import logging
from typing import Callable, Optional

from app.logging import get_logger
from app.logging.context import bind_log_context, log_context
from app.notifications.base import Notifier

from .decoder import PayloadDecoder
from .exceptions import PayloadDecodeError, PayloadValidationError, UnknownNotificationKindError
from .models import DeliveryOutcome
from .router import DispatchRouter

logger = get_logger(__name__, component="consumer")


class MessageHandler:
    """Runs the decode -> route -> notify pipeline for one message at a time.

    A fresh notifier is obtained from ``notifier_factory`` for every message,
    so nothing a delivery does can leak into the next one.
    """

    def __init__(
        self,
        notifier_factory: Callable[[], Notifier],
        decoder: Optional[PayloadDecoder] = None,
        router: Optional[DispatchRouter] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize message handler.

        Args:
            notifier_factory: Callable returning the Notifier for one message
            decoder: Payload decoder (creates default if None)
            router: Dispatch router (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.notifier_factory = notifier_factory
        self.decoder = decoder or PayloadDecoder()
        self.router = router or DispatchRouter()
        self.logger = logger_instance or logger

    def handle(
        self,
        body: bytes,
        delivery_tag: int,
        message_id: Optional[str] = None,
        redelivered: bool = False,
    ) -> DeliveryOutcome:
        """Process one delivered message.

        Args:
            body: Raw message body
            delivery_tag: Broker delivery tag (for log correlation)
            message_id: AMQP message-id property, if the producer set one
            redelivered: Whether the broker flagged this as a redelivery

        Returns:
            DeliveryOutcome deciding ack or nack for this delivery tag
        """
        with log_context(delivery_tag=delivery_tag, message_id=message_id):
            self.logger.info(
                "Message received",
                extra={
                    "event": "message.received",
                    "body_bytes": len(body),
                    "redelivered": redelivered,
                },
            )

            try:
                request = self.decoder.decode(body)
            except PayloadDecodeError as e:
                reason = (
                    "validation_error" if isinstance(e, PayloadValidationError) else "decode_error"
                )
                self.logger.warning(
                    f"Dropping message with invalid payload: {e}",
                    extra={"event": "message.rejected", "reason": reason},
                )
                return DeliveryOutcome.REJECTED_PERMANENT

            bind_log_context(kind=request.kind.value, recipient=request.recipient_address)

            try:
                notifier = self.notifier_factory()
                self.router.route(request, notifier)
            except UnknownNotificationKindError as e:
                self.logger.warning(
                    f"Dropping message: {e}",
                    extra={
                        "event": "message.rejected",
                        "reason": "unknown_kind",
                        "raw_type": e.raw_type,
                    },
                )
                return DeliveryOutcome.REJECTED_PERMANENT
            except Exception as e:
                # Any notifier failure is isolated to this message
                self.logger.error(
                    f"Delivery of {request.kind.value} notification to "
                    f"{request.recipient_address} failed: {e}",
                    exc_info=True,
                    extra={
                        "event": "message.delivery_failed",
                        "error_type": type(e).__name__,
                    },
                )
                return DeliveryOutcome.REJECTED_TRANSIENT

            self.logger.info(
                f"Delivered {request.kind.value} notification to {request.recipient_address}",
                extra={"event": "message.delivered"},
            )
            return DeliveryOutcome.DELIVERED
