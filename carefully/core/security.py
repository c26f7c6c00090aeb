"""Signed session cookie verification.

Tokens are issued by the login flow (outside this service) with the same
secret; the API only needs to map a cookie back to a user id.
"""
import base64
import hashlib
import hmac
import time

from carefully.core.config import get_settings


# Session token: base64(user_id:timestamp).hmac
def _signature(payload: bytes) -> str:
    settings = get_settings()
    return hmac.new(settings.secret_key.encode("utf-8"), payload, hashlib.sha256).hexdigest()


def create_session_token(user_id: int, issued_at: int | None = None) -> str:
    """Create a signed session token for the user (for auth cookie)."""
    ts = int(time.time()) if issued_at is None else issued_at
    payload = f"{user_id}:{ts}".encode("utf-8")
    return base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=") + "." + _signature(payload)


def verify_session_token(token: str | None) -> int | None:
    """Verify signed token and return user_id if valid; None otherwise."""
    if not token or "." not in token:
        return None
    try:
        encoded, sig = token.rsplit(".", 1)
        pad = 4 - len(encoded) % 4
        if pad != 4:
            encoded += "=" * pad
        payload = base64.urlsafe_b64decode(encoded)
        if not hmac.compare_digest(_signature(payload), sig):
            return None
        user_part, ts_part = payload.decode("utf-8").split(":", 1)
        user_id = int(user_part)
        ts = int(ts_part)
    except (ValueError, TypeError, UnicodeDecodeError):
        return None

    if abs(time.time() - ts) > get_settings().auth_cookie_max_age:
        return None
    return user_id
