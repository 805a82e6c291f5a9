"""Additional validation utilities for configuration."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check configuration for settings that are valid but risky.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    broker = config_dict.get("broker", {})
    if isinstance(broker, dict):
        if broker.get("requeue_on_delivery_failure") is True:
            warning_messages.append(
                "requeue_on_delivery_failure is enabled: a message that always fails "
                "delivery will be redelivered indefinitely unless the queue has a "
                "dead-letter policy"
            )

        prefetch = broker.get("prefetch_count", 1)
        # Out-of-range values are left to model validation
        if isinstance(prefetch, int) and 100 < prefetch <= 1000:
            warning_messages.append(
                f"Large prefetch_count ({prefetch}) keeps many messages unacknowledged "
                "while they wait behind a slow SMTP relay"
            )

        attempts = broker.get("max_connect_attempts", 20)
        if isinstance(attempts, int) and 1 <= attempts < 3:
            warning_messages.append(
                f"Low max_connect_attempts ({attempts}) may stop the worker before "
                "the broker finishes starting"
            )

    email = config_dict.get("email", {})
    branding = config_dict.get("branding", {})
    if isinstance(email, dict) and isinstance(branding, dict):
        backend_url = branding.get("backend_url", "")
        if (
            isinstance(backend_url, str)
            and backend_url.startswith("https://")
            and email.get("use_tls") is False
        ):
            warning_messages.append(
                "use_tls is false while backend_url is https: reset and activation "
                "tokens will travel to the SMTP relay unencrypted"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """
    Emit warning messages using Python's warnings module.

    Args:
        warning_messages: List of warning messages to emit
    """
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
