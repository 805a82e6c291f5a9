"""State and outcome types for the message ingestion engine."""

from enum import Enum


class ConnectionState(str, Enum):
    """Lifecycle of the broker link.

    DISCONNECTED -> CONNECTING -> CONNECTED -> CONSUMING. CONNECTING repeats
    on each retry; CONNECTED and CONSUMING fall back to DISCONNECTED when the
    broker closes the connection.
    """

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CONSUMING = "consuming"


class DeliveryOutcome(str, Enum):
    """Result of processing one message, mapped 1:1 to ack or nack.

    - DELIVERED: notifier succeeded; ack
    - REJECTED_PERMANENT: malformed payload or unknown kind; ack (drop)
    - REJECTED_TRANSIENT: notifier failed; nack (requeue per policy)
    """

    DELIVERED = "delivered"
    REJECTED_PERMANENT = "rejected_permanent"
    REJECTED_TRANSIENT = "rejected_transient"

    @property
    def acknowledges(self) -> bool:
        """True if the message is settled with a positive acknowledgment."""
        return self is not DeliveryOutcome.REJECTED_TRANSIENT
