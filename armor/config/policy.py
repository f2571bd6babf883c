"""Build CSP policies from YAML files or plain mappings.

Document layout::

    default: false
    report_only: false
    directives:
      default-src: ["'self'", cdn.example.com]
      object-src: ["'none'"]
    block_all_mixed_content: false
    upgrade_insecure_requests: true
    report_uri: https://example.com/csp
    report_to:
      - group: csp
        max_age: 10886400
        endpoints:
          - url: https://example.com/reports
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from armor.csp import DIRECTIVES, ContentSecurityPolicy, ReportTo

logger = structlog.get_logger()

_KNOWN_KEYS = frozenset({
    "default",
    "report_only",
    "directives",
    "block_all_mixed_content",
    "upgrade_insecure_requests",
    "report_uri",
    "report_to",
})


class PolicyConfigError(ValueError):
    """Raised when a policy document cannot be turned into a CSP."""
    pass


def policy_from_mapping(data: dict[str, Any]) -> ContentSecurityPolicy:
    """Build a ContentSecurityPolicy from a parsed policy document."""
    if not isinstance(data, dict):
        raise PolicyConfigError("policy document must be a mapping")

    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        raise PolicyConfigError(f"unknown policy keys: {', '.join(sorted(unknown))}")

    policy = ContentSecurityPolicy.default() if data.get("default") else ContentSecurityPolicy()

    directives = data.get("directives") or {}
    if not isinstance(directives, dict):
        raise PolicyConfigError("'directives' must be a mapping of directive name to sources")
    for name, sources in directives.items():
        if name not in DIRECTIVES:
            raise PolicyConfigError(f"unknown CSP directive: {name!r}")
        if sources is None:
            sources = []
        if isinstance(sources, str):
            sources = [sources]
        if not isinstance(sources, list):
            raise PolicyConfigError(f"sources for {name!r} must be a list")
        policy.directive(name, [str(s) for s in sources])

    if data.get("block_all_mixed_content"):
        policy.block_all_mixed_content()
    if data.get("upgrade_insecure_requests"):
        policy.upgrade_insecure_requests()
    if data.get("report_uri"):
        policy.report_uri(str(data["report_uri"]))

    raw_groups = data.get("report_to") or []
    if not isinstance(raw_groups, list):
        raise PolicyConfigError("'report_to' must be a list of endpoint groups")
    try:
        groups = [ReportTo.model_validate(g) for g in raw_groups]
    except ValidationError as exc:
        raise PolicyConfigError(f"invalid report_to entry: {exc}") from exc
    policy.report_to(groups)

    if data.get("report_only"):
        policy.report_only()
    return policy


def load_policy(path: str | Path) -> ContentSecurityPolicy:
    """Load a policy document from a YAML file."""
    path = Path(path)
    if not path.exists():
        raise PolicyConfigError(f"policy file not found: {path}")
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise PolicyConfigError(f"invalid YAML in {path}: {exc}") from exc
    policy = policy_from_mapping(data)
    logger.debug("csp_policy_loaded", path=str(path), header=policy.header_name)
    return policy
