"""Content-Security-Policy (CSP) builder.

Directives accumulate on a mutable builder and are rendered into a single
header value:

    >>> policy = new().default_src([Source.SELF, "areweasyncyet.rs"]).object_src([Source.NONE])
    >>> policy.value()
    "default-src 'self' areweasyncyet.rs; object-src 'none'"

Rendered fragments are sorted, so the header value does not depend on the
order in which directives were added.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Union

import structlog
from pydantic import BaseModel, Field
from starlette.datastructures import MutableHeaders

logger = structlog.get_logger()

CSP_HEADER = "Content-Security-Policy"
CSP_REPORT_ONLY_HEADER = "Content-Security-Policy-Report-Only"

# Legacy default, kept as one opaque token
DEFAULT_POLICY = "script-src 'self'; object-src 'self'"

DIRECTIVES = frozenset({
    "base-uri",
    "connect-src",
    "default-src",
    "font-src",
    "form-action",
    "frame-ancestors",
    "frame-src",
    "img-src",
    "media-src",
    "object-src",
    "plugin-types",
    "require-sri-for",
    "sandbox",
    "script-src",
    "style-src",
    "worker-src",
})


class Source(str, Enum):
    """Well-known CSP source keywords and schemes."""

    SELF = "'self'"
    SRC = "'src'"
    NONE = "'none'"
    UNSAFE_INLINE = "'unsafe-inline'"
    DATA = "data:"
    MEDIASTREAM = "mediastream:"
    HTTPS = "https:"
    BLOB = "blob:"
    FILESYSTEM = "filesystem:"
    STRICT_DYNAMIC = "'strict-dynamic'"
    UNSAFE_EVAL = "'unsafe-eval'"
    WILDCARD = "*"


# A keyword or any caller-supplied host/origin string
SourceToken = Union[Source, str]


def render_source(token: SourceToken) -> str:
    if isinstance(token, Source):
        return token.value
    return str(token)


class ReportToEndpoint(BaseModel):
    """One endpoint of a report-to group."""

    url: str


class ReportTo(BaseModel):
    """Value of a `report-to` directive (Reporting API endpoint group)."""

    group: str | None = None
    max_age: int
    endpoints: list[ReportToEndpoint] = Field(default_factory=list)
    include_subdomains: bool | None = None


class ContentSecurityPolicy:
    """Chainable Content-Security-Policy builder.

    Every directive method appends to that directive's source list and
    returns the builder, so repeated calls merge into one directive.
    """

    def __init__(self) -> None:
        self._policy: list[str] = []
        self._directives: dict[str, list[str]] = {}
        self._report_only = False

    @classmethod
    def default(cls) -> ContentSecurityPolicy:
        """Builder seeded with "script-src 'self'; object-src 'self'"."""
        policy = cls()
        policy._policy.append(DEFAULT_POLICY)
        return policy

    def __repr__(self) -> str:
        return f"ContentSecurityPolicy({self.value()!r}, report_only={self._report_only})"

    def _insert_directive(
        self, directive: str, sources: Iterable[SourceToken] | SourceToken
    ) -> ContentSecurityPolicy:
        if isinstance(sources, str):
            sources = [sources]
        entry = self._directives.setdefault(directive, [])
        entry.extend(render_source(s) for s in sources)
        return self

    def directive(
        self, name: str, sources: Iterable[SourceToken] | SourceToken
    ) -> ContentSecurityPolicy:
        """Append sources to a directive given by its CSP name, e.g. "img-src"."""
        if name not in DIRECTIVES:
            raise ValueError(f"unknown CSP directive: {name!r}")
        return self._insert_directive(name, sources)

    # ── Source-list directives ───────────────────────────────────────────

    def base_uri(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("base-uri", sources)

    def connect_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("connect-src", sources)

    def default_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        """Fallback for the other fetch directives."""
        return self._insert_directive("default-src", sources)

    def font_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("font-src", sources)

    def form_action(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("form-action", sources)

    def frame_ancestors(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        """Parents allowed to embed the page (supersedes X-Frame-Options)."""
        return self._insert_directive("frame-ancestors", sources)

    def frame_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("frame-src", sources)

    def img_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("img-src", sources)

    def media_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("media-src", sources)

    def object_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("object-src", sources)

    def plugin_types(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        """MIME types of plugins, e.g. "application/pdf"."""
        return self._insert_directive("plugin-types", sources)

    def require_sri_for(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        """Resource kinds ("script", "style") that must carry integrity metadata."""
        return self._insert_directive("require-sri-for", sources)

    def sandbox(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        """Sandbox flags such as "allow-scripts"; an empty list sandboxes fully."""
        return self._insert_directive("sandbox", sources)

    def script_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("script-src", sources)

    def style_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("style-src", sources)

    def worker_src(self, sources: Iterable[SourceToken] | SourceToken) -> ContentSecurityPolicy:
        return self._insert_directive("worker-src", sources)

    # ── Standalone tokens and reporting ──────────────────────────────────

    def block_all_mixed_content(self) -> ContentSecurityPolicy:
        self._policy.append("block-all-mixed-content")
        return self

    def upgrade_insecure_requests(self) -> ContentSecurityPolicy:
        self._policy.append("upgrade-insecure-requests")
        return self

    def report_uri(self, uri: str) -> ContentSecurityPolicy:
        """Legacy reporting directive, superseded by report-to."""
        self._policy.append(f"report-uri {uri}")
        return self

    def report_to(self, endpoints: Iterable[ReportTo] | ReportTo) -> ContentSecurityPolicy:
        """Add one `report-to <json>` token per endpoint group.

        A group that cannot be serialized is logged and skipped; the rest of
        the policy is still built.
        """
        if isinstance(endpoints, ReportTo):
            endpoints = [endpoints]
        for endpoint in endpoints:
            try:
                payload = endpoint.model_dump_json(exclude_none=True)
            except ValueError as exc:
                logger.warning("csp_report_to_serialization_failed", error=str(exc))
                continue
            self._policy.append(f"report-to {payload}")
        return self

    def report_only(self) -> ContentSecurityPolicy:
        """Switch to Content-Security-Policy-Report-Only."""
        self._report_only = True
        return self

    @property
    def is_report_only(self) -> bool:
        return self._report_only

    @property
    def header_name(self) -> str:
        return CSP_REPORT_ONLY_HEADER if self._report_only else CSP_HEADER

    # ── Rendering ────────────────────────────────────────────────────────

    def value(self) -> str:
        """Render the policy. Does not mutate the builder."""
        fragments = list(self._policy)
        for directive, sources in self._directives.items():
            fragments.append(f"{directive} {' '.join(sources)}")
        return "; ".join(sorted(fragments))

    def apply(self, headers: MutableHeaders) -> None:
        """Write the policy into headers, replacing any existing value."""
        headers[self.header_name] = self.value()


def new() -> ContentSecurityPolicy:
    """Empty builder."""
    return ContentSecurityPolicy()


def default() -> ContentSecurityPolicy:
    """Builder seeded with the legacy default policy."""
    return ContentSecurityPolicy.default()
