"""Fixed-value security headers (helmet-style)."""

from __future__ import annotations

from enum import Enum

from starlette.datastructures import MutableHeaders

# HSTS max-age: 60 days
HSTS_MAX_AGE = 5184000

DNS_PREFETCH_CONTROL = "X-DNS-Prefetch-Control"
CONTENT_TYPE_OPTIONS = "X-Content-Type-Options"
FRAME_OPTIONS = "X-Frame-Options"
POWERED_BY = "X-Powered-By"
STRICT_TRANSPORT_SECURITY = "Strict-Transport-Security"
XSS_PROTECTION = "X-XSS-Protection"
REFERRER_POLICY = "Referrer-Policy"


class FrameOptions(str, Enum):
    """X-Frame-Options values."""

    SAME_ORIGIN = "sameorigin"
    DENY = "deny"


class ReferrerOptions(str, Enum):
    """Referrer-Policy values. EMPTY means no explicit preference."""

    EMPTY = ""
    NO_REFERRER = "no-referrer"
    NO_REFERRER_WHEN_DOWNGRADE = "no-referrer-when-downgrade"
    SAME_ORIGIN = "same-origin"
    ORIGIN = "origin"
    STRICT_ORIGIN = "strict-origin"
    ORIGIN_WHEN_CROSS_ORIGIN = "origin-when-cross-origin"
    STRICT_ORIGIN_WHEN_CROSS_ORIGIN = "strict-origin-when-cross-origin"
    UNSAFE_URL = "unsafe-url"


def armor(headers: MutableHeaders) -> None:
    """Apply all fixed protections.

    Order is fixed so the resulting header list is reproducible:
    dns_prefetch_control, dont_sniff_mimetype, frameguard, hide_powered_by,
    hsts, xss_filter.
    """
    dns_prefetch_control(headers)
    dont_sniff_mimetype(headers)
    frameguard(headers)
    hide_powered_by(headers)
    hsts(headers)
    xss_filter(headers)


def dns_prefetch_control(headers: MutableHeaders) -> None:
    """Set X-DNS-Prefetch-Control."""
    headers[DNS_PREFETCH_CONTROL] = "on"


def dont_sniff_mimetype(headers: MutableHeaders) -> None:
    """Stop browsers from guessing the MIME type of a response."""
    headers[CONTENT_TYPE_OPTIONS] = "nosniff"


def frameguard(headers: MutableHeaders, mode: FrameOptions | None = None) -> None:
    """Mitigate clickjacking by setting X-Frame-Options (sameorigin unless DENY)."""
    if mode is None:
        mode = FrameOptions.SAME_ORIGIN
    headers[FRAME_OPTIONS] = FrameOptions(mode).value


def hide_powered_by(headers: MutableHeaders) -> None:
    """Remove X-Powered-By so the backing technology is less obvious."""
    if POWERED_BY in headers:
        del headers[POWERED_BY]


def hsts(headers: MutableHeaders) -> None:
    """Keep HTTPS users on HTTPS for 60 days.

    This does not redirect plain-HTTP visitors; it only tells browsers that
    already reached the site over HTTPS to keep using it.
    """
    headers[STRICT_TRANSPORT_SECURITY] = f"max-age={HSTS_MAX_AGE}"


def xss_filter(headers: MutableHeaders) -> None:
    headers[XSS_PROTECTION] = "1; mode=block"


def referrer_policy(headers: MutableHeaders, mode: ReferrerOptions | None = None) -> None:
    """Add a Referrer-Policy header (no-referrer when mode is None).

    Appended rather than replaced: browsers honour the last valid value of a
    repeated Referrer-Policy header, which lets callers stack fallbacks.
    """
    if mode is None:
        mode = ReferrerOptions.NO_REFERRER
    headers.append(REFERRER_POLICY, ReferrerOptions(mode).value)
