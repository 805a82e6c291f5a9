"""Template context builders, one per notification kind.

Links in the emails point at the backend, not at a frontend: activation and
reset tokens are consumed by backend endpoints which then redirect.
"""

from typing import Dict, Optional
from urllib.parse import quote

from app.config.models import BrandingConfig
from app.domain.models import UNKNOWN_LOGIN_DETAIL
from app.utils.timestamps import format_display_timestamp


def build_base_context(branding: BrandingConfig, name: str) -> Dict:
    """Fields shared by every template."""
    return {
        "user_name": name,
        "app_name": branding.name,
        "support_email": branding.support_email,
        "backend_url": branding.backend_url,
        "login_url": f"{branding.backend_url}/auth/login",
    }


def build_welcome_context(
    branding: BrandingConfig, name: str, activation_token: Optional[str]
) -> Dict:
    """Welcome email; ``activation_url`` is None for accounts that need no activation."""
    activation_url = None
    if activation_token:
        activation_url = (
            f"{branding.backend_url}/api/auth/activate?token={quote(activation_token, safe='')}"
        )
    return {
        **build_base_context(branding, name),
        "activation_url": activation_url,
    }


def build_login_notice_context(
    branding: BrandingConfig, name: str, login_details: Dict[str, str]
) -> Dict:
    """Sign-in notice with the details the router extracted from the message."""
    return {
        **build_base_context(branding, name),
        "login_time": format_display_timestamp(),
        "ip_address": login_details.get("ipAddress", UNKNOWN_LOGIN_DETAIL),
        "device_info": login_details.get("deviceInfo", UNKNOWN_LOGIN_DETAIL),
        "user_agent": login_details.get("userAgent", UNKNOWN_LOGIN_DETAIL),
        "location": login_details.get("location", UNKNOWN_LOGIN_DETAIL),
        "forgot_password_url": f"{branding.backend_url}/api/password/forgot",
    }


def build_password_reset_context(branding: BrandingConfig, name: str, reset_token: str) -> Dict:
    return {
        **build_base_context(branding, name),
        "reset_url": (
            f"{branding.backend_url}/api/password/reset?token={quote(reset_token, safe='')}"
        ),
    }


def build_password_updated_context(branding: BrandingConfig, name: str) -> Dict:
    return {
        **build_base_context(branding, name),
        "changed_at": format_display_timestamp(),
    }
