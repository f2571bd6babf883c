"""
armor - HTTP security headers, adapted from helmetjs
"""

__version__ = "0.1.0"

from armor.csp import ContentSecurityPolicy, ReportTo, ReportToEndpoint, Source
from armor.headers import (
    FrameOptions,
    ReferrerOptions,
    armor,
    dns_prefetch_control,
    dont_sniff_mimetype,
    frameguard,
    hide_powered_by,
    hsts,
    referrer_policy,
    xss_filter,
)

__all__ = [
    'ContentSecurityPolicy',
    'FrameOptions',
    'ReferrerOptions',
    'ReportTo',
    'ReportToEndpoint',
    'Source',
    'armor',
    'dns_prefetch_control',
    'dont_sniff_mimetype',
    'frameguard',
    'hide_powered_by',
    'hsts',
    'referrer_policy',
    'xss_filter',
]
