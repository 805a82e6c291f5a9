"""Custom exceptions for broker connectivity and message handling."""

from typing import List, Optional


class MessagingError(Exception):
    """Base exception for all messaging errors."""

    pass


class BrokerConnectionError(MessagingError):
    """The broker could not be reached within the allowed attempts.

    Fatal: without a broker link the worker has nothing to do, so this
    propagates out of the consumer and terminates the process.
    """

    def __init__(self, message: str, address: str, attempts: int) -> None:
        """Initialize with the target address and attempts made.

        Args:
            message: Human-readable error message
            address: Broker host:port that was tried
            attempts: Number of connection attempts made
        """
        super().__init__(message)
        self.address = address
        self.attempts = attempts


class PayloadDecodeError(MessagingError):
    """Message body is not UTF-8 JSON describing a notification.

    Permanent: redelivering the same bytes reproduces the same failure, so
    the message is acknowledged and dropped.
    """

    pass


class PayloadValidationError(PayloadDecodeError):
    """Message body is valid JSON but lacks mandatory fields.

    Attributes:
        missing_fields: Field names that were absent or empty
    """

    def __init__(self, message: str, missing_fields: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields or []


class UnknownNotificationKindError(MessagingError):
    """The ``type`` of a decoded request matches no known notification kind.

    Permanent: logged and acknowledged without contacting any notifier.
    """

    def __init__(self, raw_type: str) -> None:
        super().__init__(f"Unknown notification type: '{raw_type}'")
        self.raw_type = raw_type
