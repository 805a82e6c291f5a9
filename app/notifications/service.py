"""Email implementation of the Notifier capability.

EmailNotifier turns each notifier operation into one rendered email:
validate arguments, build the template context, render subject and bodies,
and hand the message to the SMTP relay. It does not retry; a failed send
surfaces as a DeliveryError and the consumer decides what happens to the
message.
"""

import logging
from email.message import EmailMessage
from typing import Dict, Optional

from app.config.environment import EnvironmentConfig
from app.config.models import AppConfig
from app.logging import get_logger

from .base import Notifier
from .models import InvalidArgumentError
from .payloads import (
    build_login_notice_context,
    build_password_reset_context,
    build_password_updated_context,
    build_welcome_context,
)
from .smtp_client import SMTPClient, build_sender_address, validate_recipient
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notifier")


class EmailNotifier(Notifier):
    """Delivers notifications as multipart (plain text + HTML) emails.

    Holds only configuration and collaborators, never per-message state.
    """

    def __init__(
        self,
        app_config: AppConfig,
        env_config: EnvironmentConfig,
        template_renderer: Optional[TemplateRenderer] = None,
        smtp_client: Optional[SMTPClient] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the email notifier.

        Args:
            app_config: Application configuration (branding, email transport)
            env_config: Environment configuration (SMTP endpoint, sender)
            template_renderer: Template renderer instance (creates default if None)
            smtp_client: SMTP client instance (creates default if None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.branding = app_config.branding
        self.env_config = env_config
        self.template_renderer = template_renderer or TemplateRenderer()
        self.smtp_client = smtp_client or SMTPClient(env_config, app_config.email)
        self.logger = logger_instance or logger

    def send_welcome(
        self, email: str, name: str, activation_token: Optional[str] = None
    ) -> None:
        context = build_welcome_context(self.branding, name, activation_token)
        self._send("welcome", email, context)

    def send_login_notice(self, email: str, name: str, context: Dict[str, str]) -> None:
        template_context = build_login_notice_context(self.branding, name, context)
        self._send("login_notification", email, template_context)

    def send_password_reset(self, email: str, name: str, reset_token: str) -> None:
        if not reset_token:
            self.logger.warning(
                f"Empty password reset token for {email}",
                extra={"event": "notification.invalid_argument", "argument": "reset_token"},
            )
            raise InvalidArgumentError(
                "Password reset token cannot be empty", argument="reset_token"
            )

        context = build_password_reset_context(self.branding, name, reset_token)
        self._send("password_reset", email, context)

    def send_password_updated_confirmation(self, email: str, name: str) -> None:
        context = build_password_updated_context(self.branding, name)
        self._send("password_updated", email, context)

    def _send(self, template_name: str, email: str, context: Dict) -> None:
        """Render a template triple and deliver it to a single recipient.

        Raises:
            InvalidArgumentError: If the recipient address is invalid
            NotificationTemplateError: If rendering fails
            SMTPDeliveryError: If the relay rejects or cannot take the message
        """
        recipient = validate_recipient(email)
        rendered = self.template_renderer.render(template_name, context)

        message = EmailMessage()
        message["Subject"] = rendered["subject"]
        message["From"] = build_sender_address(self.env_config)
        message["To"] = recipient
        message.set_content(rendered["text_body"])
        message.add_alternative(rendered["html_body"], subtype="html")

        self.logger.info(
            f"Sending {template_name} email to {recipient}",
            extra={"event": "notification.send.attempt", "template": template_name},
        )

        self.smtp_client.send(message)

        self.logger.info(
            f"Email sent to {recipient} - subject: {rendered['subject']}",
            extra={"event": "notification.send.success", "template": template_name},
        )
