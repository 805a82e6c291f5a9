"""Template rendering for email notifications using Jinja2.

Each notification template is a triple of files in the
app.notifications.email_templates package:

- ``<name>.subject.j2``: subject line
- ``<name>.txt.j2``: plain text body
- ``<name>.html.j2``: HTML body
"""

import logging
from typing import Any, Dict

from jinja2 import Environment, PackageLoader, StrictUndefined, TemplateError, select_autoescape

from .models import NotificationTemplateError

logger = logging.getLogger(__name__)


class TemplateRenderer:
    """Renders notification emails using Jinja2.

    HTML bodies are autoescaped (user names and device strings come from
    the producer unchecked). Templates are cached by the Jinja2 environment.
    """

    def __init__(self, template_dir: str = "email_templates"):
        """Initialize template renderer with Jinja2 environment.

        Args:
            template_dir: Directory name within app.notifications package
        """
        self.env = Environment(
            loader=PackageLoader("app.notifications", template_dir),
            autoescape=select_autoescape(enabled_extensions=("html.j2",), default=False),
            undefined=StrictUndefined,
            keep_trailing_newline=True,
        )

        logger.debug(f"Initialized TemplateRenderer with templates from {template_dir}")

    def render(self, template_name: str, context: Dict[str, Any]) -> Dict[str, str]:
        """Render subject, plain text and HTML body for one notification.

        Args:
            template_name: Base name of the template triple (e.g. "password_reset")
            context: Template variables

        Returns:
            Dictionary with ``subject`` (single line), ``text_body`` and ``html_body``

        Raises:
            NotificationTemplateError: If a template is missing or fails to render
        """
        try:
            subject = self.env.get_template(f"{template_name}.subject.j2").render(context)
            text_body = self.env.get_template(f"{template_name}.txt.j2").render(context)
            html_body = self.env.get_template(f"{template_name}.html.j2").render(context)
        except TemplateError as e:
            raise NotificationTemplateError(
                f"Template rendering failed for '{template_name}': {e}"
            ) from e

        return {
            "subject": " ".join(subject.split()),
            "text_body": text_body,
            "html_body": html_body,
        }
