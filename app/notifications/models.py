"""Exceptions raised by notifiers.

Every failure of a Notifier operation is a NotificationError. The consumer
treats all of them as failed delivery attempts and negatively acknowledges
the message.
"""


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when template rendering fails due to a missing or broken template."""

    pass


class DeliveryError(NotificationError):
    """Raised when a notification could not be handed to its transport."""

    pass


class InvalidArgumentError(DeliveryError):
    """Raised when a notifier operation is called with an unusable argument.

    Examples: an empty password reset token, or a recipient address that is
    not a syntactically valid email address.
    """

    def __init__(self, message: str, argument: str) -> None:
        """Initialize with the name of the offending argument.

        Args:
            message: Human-readable error message
            argument: Parameter name that was rejected (e.g. "reset_token")
        """
        super().__init__(message)
        self.argument = argument


class SMTPDeliveryError(DeliveryError):
    """Raised when the SMTP relay refuses the message or cannot be reached."""

    pass
