from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from app.core.config import settings

def get_session_key(request: Request) -> str:
    """
    Rate limit key for the browser-facing routes.
    One key per browser session; requests without a session cookie fall back
    to the client address, trusting X-Forwarded-For / X-Real-IP from the proxy.
    """
    session_id = request.cookies.get(settings.SESSION_COOKIE_NAME)
    if session_id:
        return f"session:{session_id}"

    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        # "client, proxy1, proxy2"
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip

    return get_remote_address(request)

limiter = Limiter(key_func=get_session_key)
