"""Security headers injection middleware."""

from __future__ import annotations

import structlog
from starlette.datastructures import MutableHeaders
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from armor.config.loader import get_settings
from armor.config.policy import load_policy
from armor.csp import ContentSecurityPolicy
from armor.headers import FrameOptions, ReferrerOptions, armor, frameguard, referrer_policy

logger = structlog.get_logger()


class ArmorMiddleware(BaseHTTPMiddleware):
    """Inject security headers into every response.

    - Applies the fixed helmet-style headers and strips X-Powered-By
    - Adds Referrer-Policy and, when configured, a CSP header
    - Arguments left as None fall back to ArmorSettings
    """

    def __init__(
        self,
        app: ASGIApp,
        policy: ContentSecurityPolicy | None = None,
        frame_options: FrameOptions | None = None,
        referrer: ReferrerOptions | None = None,
    ) -> None:
        super().__init__(app)
        settings = get_settings()
        if policy is None and settings.csp_policy_file:
            policy = load_policy(settings.csp_policy_file)
            if settings.csp_report_only:
                policy.report_only()
        self.frame_options = frame_options or settings.frame_options
        self.referrer = referrer if referrer is not None else settings.referrer_policy
        self.policy = policy
        # Policies don't change per request; render once
        self._csp: tuple[str, str] | None = None
        if policy is not None:
            self._csp = (policy.header_name, policy.value())

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        try:
            self._apply_headers(response)
        except Exception as exc:
            logger.error("security_headers_error", error=str(exc), path=request.url.path)
        return response

    def _apply_headers(self, response: Response) -> None:
        # Work on a copy; the response only changes once every step succeeded
        headers = MutableHeaders(raw=list(response.headers.raw))
        armor(headers)
        frameguard(headers, self.frame_options)
        referrer_policy(headers, self.referrer)
        if self._csp is not None:
            name, value = self._csp
            headers[name] = value
        response.headers.raw[:] = headers.raw
