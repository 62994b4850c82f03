from __future__ import annotations

import secrets
from typing import Optional

from src.core.settings import AppSettings, get_app_settings

WEBHOOK_REALM = 'Basic realm="Secure Area"'


# PUBLIC_INTERFACE
def verify_webhook_credentials(
    username: str, password: str, settings: Optional[AppSettings] = None
) -> bool:
    """
    Compare Basic-Auth credentials with WEBHOOK_AUTH_USER / WEBHOOK_AUTH_PASS
    in constant time. Always False when either setting is unset.
    """
    settings = settings or get_app_settings()
    expected_user = settings.WEBHOOK_AUTH_USER
    expected_pass = settings.WEBHOOK_AUTH_PASS
    if not expected_user or not expected_pass:
        return False
    user_ok = secrets.compare_digest(username.encode("utf-8"), expected_user.encode("utf-8"))
    pass_ok = secrets.compare_digest(password.encode("utf-8"), expected_pass.encode("utf-8"))
    return user_ok and pass_ok
