"""Security headers middleware with ConfigManager-based toggles.

Sets common security headers:
 - Content-Security-Policy (CSP)
 - X-Frame-Options (XFO)
 - X-Content-Type-Options: nosniff
 - Referrer-Policy

Each header is individually togglable via AppSettings. HSTS is intentionally omitted.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response
from starlette.types import ASGIApp

from taskmanager.modules.config import config_manager


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp) -> None:
        super().__init__(app)

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        settings = config_manager.app_settings

        if settings.security_nosniff_enabled:
            if "X-Content-Type-Options" not in response.headers:
                response.headers["X-Content-Type-Options"] = "nosniff"

        if settings.security_xfo_enabled:
            if "X-Frame-Options" not in response.headers:
                response.headers["X-Frame-Options"] = settings.security_xfo_value

        if settings.security_referrer_policy_enabled:
            if "Referrer-Policy" not in response.headers:
                response.headers["Referrer-Policy"] = settings.security_referrer_policy_value

        if settings.security_csp_enabled:
            csp_value = settings.security_csp_value
            if csp_value and "Content-Security-Policy" not in response.headers:
                # The task view lives on a WebSocket to this same host; allow it
                # explicitly since some browsers do not match ws: against 'self'.
                host = request.headers.get("host") or f"localhost:{settings.port}"
                ws_origins = f"ws://{host} wss://{host}"
                response.headers["Content-Security-Policy"] = _inject_ws_origins(csp_value, ws_origins)

        return response


def _inject_ws_origins(csp: str, ws_origins: str) -> str:
    """Append WebSocket origins to the connect-src CSP directive.

    Parses the CSP directives by splitting on ';' so that injection works
    regardless of spacing or ordering in the CSP string.
    """
    directives = [d.strip() for d in csp.split(";") if d.strip()]
    updated = []
    injected = False
    for directive in directives:
        if directive.startswith("connect-src"):
            directive = f"{directive} {ws_origins}"
            injected = True
        updated.append(directive)
    if not injected:
        updated.append(f"connect-src {ws_origins}")
    return "; ".join(updated)
