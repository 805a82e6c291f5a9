"""Notifier capability consumed by the dispatch router.

A Notifier performs the outbound delivery for each notification kind. The
router depends only on this interface; EmailNotifier is the production
implementation and tests substitute mocks.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional


class Notifier(ABC):
    """One operation per notification kind.

    Each operation returns None on success and raises a NotificationError
    subclass on failure. Implementations must not keep state between calls:
    a new instance may be created for every message, and the same instance
    must be safe to use from any message handler.
    """

    @abstractmethod
    def send_welcome(
        self, email: str, name: str, activation_token: Optional[str] = None
    ) -> None:
        """Send the welcome notification, with an activation link if a token is given."""

    @abstractmethod
    def send_login_notice(self, email: str, name: str, context: Dict[str, str]) -> None:
        """Send a new sign-in notice.

        Args:
            context: ipAddress, deviceInfo, userAgent and location, already
                defaulted by the router
        """

    @abstractmethod
    def send_password_reset(self, email: str, name: str, reset_token: str) -> None:
        """Send the password reset link.

        Raises:
            InvalidArgumentError: If reset_token is empty
        """

    @abstractmethod
    def send_password_updated_confirmation(self, email: str, name: str) -> None:
        """Confirm that the account password was changed."""
