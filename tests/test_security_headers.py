"""Tests for the security headers middleware."""

from __future__ import annotations

from unittest.mock import patch

import pytest
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route
from starlette.testclient import TestClient as StarletteTestClient

from armor.csp import Source, new
from armor.headers import FrameOptions, ReferrerOptions
from armor.middleware.security_headers import ArmorMiddleware


async def _homepage(request):
    return PlainTextResponse("ok", headers={"X-Powered-By": "Starlette", "Content-Security-Policy": "default-src *"})


def _make_client(**middleware_kwargs) -> StarletteTestClient:
    app = Starlette(routes=[Route("/", _homepage)])
    app.add_middleware(ArmorMiddleware, **middleware_kwargs)
    return StarletteTestClient(app)


# ── Defaults ─────────────────────────────────────────────────────────────


class TestArmorMiddlewareDefaults:
    def test_fixed_headers_applied(self):
        response = _make_client().get("/")

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["x-dns-prefetch-control"] == "on"
        assert response.headers["x-content-type-options"] == "nosniff"
        assert response.headers["x-frame-options"] == "sameorigin"
        assert response.headers["strict-transport-security"] == "max-age=5184000"
        assert response.headers["x-xss-protection"] == "1; mode=block"
        assert response.headers["referrer-policy"] == "no-referrer"

    def test_strips_x_powered_by(self):
        response = _make_client().get("/")
        assert "x-powered-by" not in response.headers

    def test_upstream_csp_kept_without_policy(self):
        response = _make_client().get("/")
        assert response.headers["content-security-policy"] == "default-src *"


# ── Configured ───────────────────────────────────────────────────────────


class TestArmorMiddlewareConfigured:
    def test_frame_and_referrer_arguments(self):
        client = _make_client(frame_options=FrameOptions.DENY, referrer=ReferrerOptions.SAME_ORIGIN)
        response = client.get("/")
        assert response.headers["x-frame-options"] == "deny"
        assert response.headers["referrer-policy"] == "same-origin"

    def test_settings_fallback(self, monkeypatch):
        monkeypatch.setenv("ARMOR_FRAME_OPTIONS", "deny")
        monkeypatch.setenv("ARMOR_REFERRER_POLICY", "strict-origin")
        response = _make_client().get("/")
        assert response.headers["x-frame-options"] == "deny"
        assert response.headers["referrer-policy"] == "strict-origin"

    def test_policy_overwrites_csp(self):
        policy = new().default_src([Source.SELF]).object_src([Source.NONE])
        response = _make_client(policy=policy).get("/")
        assert response.headers["content-security-policy"] == "default-src 'self'; object-src 'none'"

    def test_report_only_policy(self):
        policy = new().default_src([Source.SELF]).report_only()
        response = _make_client(policy=policy).get("/")
        assert response.headers["content-security-policy-report-only"] == "default-src 'self'"
        # upstream value is left alone
        assert response.headers["content-security-policy"] == "default-src *"

    def test_policy_file_from_settings(self, monkeypatch, policy_file):
        path = policy_file("directives:\n  script-src: [\"'self'\"]\n")
        monkeypatch.setenv("ARMOR_CSP_POLICY_FILE", str(path))
        monkeypatch.setenv("ARMOR_CSP_REPORT_ONLY", "true")
        response = _make_client().get("/")
        assert response.headers["content-security-policy-report-only"] == "script-src 'self'"


class TestArmorMiddlewareErrors:
    def test_error_returns_response_unmodified(self):
        with patch("armor.middleware.security_headers.armor", side_effect=RuntimeError("boom")), \
                patch("armor.middleware.security_headers.logger") as mock_logger:
            response = _make_client().get("/")

        assert response.status_code == 200
        assert "x-content-type-options" not in response.headers
        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "security_headers_error"

    def test_late_failure_leaves_no_partial_headers(self):
        """A step failing after armor() ran must not leak the headers already built."""
        policy = new().default_src([Source.SELF])
        with patch("armor.middleware.security_headers.referrer_policy", side_effect=RuntimeError("boom")), \
                patch("armor.middleware.security_headers.logger") as mock_logger:
            response = _make_client(policy=policy).get("/")

        assert response.status_code == 200
        assert response.text == "ok"
        for name in (
            "x-dns-prefetch-control",
            "x-content-type-options",
            "x-frame-options",
            "strict-transport-security",
            "x-xss-protection",
            "referrer-policy",
        ):
            assert name not in response.headers
        # upstream headers untouched
        assert response.headers["x-powered-by"] == "Starlette"
        assert response.headers["content-security-policy"] == "default-src *"
        mock_logger.error.assert_called_once()

    def test_bad_policy_file_fails_on_first_request(self, monkeypatch, tmp_path):
        """Starlette builds the middleware stack lazily, so the error surfaces with the first request."""
        monkeypatch.setenv("ARMOR_CSP_POLICY_FILE", str(tmp_path / "missing.yaml"))
        with pytest.raises(ValueError, match="not found"):
            _make_client().get("/")
