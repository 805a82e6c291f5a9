"""Message ingestion: broker connection, consumption loop, decode and dispatch."""

from app.messaging.connection import ConnectionManager
from app.messaging.consumer import NotificationConsumer
from app.messaging.decoder import PayloadDecoder
from app.messaging.exceptions import (
    BrokerConnectionError,
    MessagingError,
    PayloadDecodeError,
    PayloadValidationError,
    UnknownNotificationKindError,
)
from app.messaging.handler import MessageHandler
from app.messaging.models import ConnectionState, DeliveryOutcome
from app.messaging.router import DispatchRouter

__all__ = [
    "BrokerConnectionError",
    "ConnectionManager",
    "ConnectionState",
    "DeliveryOutcome",
    "DispatchRouter",
    "MessageHandler",
    "MessagingError",
    "NotificationConsumer",
    "PayloadDecodeError",
    "PayloadDecoder",
    "PayloadValidationError",
    "UnknownNotificationKindError",
]
