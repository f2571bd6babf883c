"""
armor CLI: print the security headers a configuration produces
"""
import argparse
import json
import sys

from starlette.datastructures import MutableHeaders

from armor.config.loader import ArmorSettings
from armor.config.policy import PolicyConfigError, load_policy
from armor.csp import CSP_HEADER, CSP_REPORT_ONLY_HEADER
from armor.headers import (
    CONTENT_TYPE_OPTIONS,
    DNS_PREFETCH_CONTROL,
    FRAME_OPTIONS,
    REFERRER_POLICY,
    STRICT_TRANSPORT_SECURITY,
    XSS_PROTECTION,
    FrameOptions,
    ReferrerOptions,
    armor,
    frameguard,
    referrer_policy,
)
from armor.logging_config import setup_logging

# MutableHeaders stores names lowercased; print them the way they are usually written
CANONICAL_NAMES = {
    name.lower(): name
    for name in (
        DNS_PREFETCH_CONTROL,
        CONTENT_TYPE_OPTIONS,
        FRAME_OPTIONS,
        STRICT_TRANSPORT_SECURITY,
        XSS_PROTECTION,
        REFERRER_POLICY,
        CSP_HEADER,
        CSP_REPORT_ONLY_HEADER,
    )
}


def canonical_items(headers):
    """(Name, value) pairs with canonical header capitalization."""
    return [(CANONICAL_NAMES.get(name, name), value) for name, value in headers.items()]


def build_headers(policy_file=None, frame=None, referrer=None, report_only=False):
    """Return the MutableHeaders produced for the given options."""
    headers = MutableHeaders()
    armor(headers)
    if frame:
        frameguard(headers, FrameOptions(frame))
    referrer_policy(headers, ReferrerOptions(referrer) if referrer is not None else None)
    if policy_file:
        policy = load_policy(policy_file)
        if report_only:
            policy.report_only()
        policy.apply(headers)
    return headers


def main(argv=None):
    """Main CLI entry point"""
    # Logging goes to stderr before anything logs; stdout carries the headers
    settings = ArmorSettings()
    setup_logging(log_level=settings.log_level, json_format=settings.log_json)

    parser = argparse.ArgumentParser(
        prog="armor",
        description="Print the HTTP security headers armor would set",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Fixed headers only
  python -m armor

  # With a CSP policy file, report-only
  python -m armor --policy csp.yaml --report-only

  # JSON output
  python -m armor --frame deny --referrer same-origin --json
        """
    )
    parser.add_argument('--policy', default=settings.csp_policy_file or None,
                        help='YAML CSP policy file')
    parser.add_argument('--frame', choices=[f.value for f in FrameOptions],
                        default=settings.frame_options.value, help='X-Frame-Options mode')
    parser.add_argument('--referrer', choices=[r.value for r in ReferrerOptions],
                        default=settings.referrer_policy.value, help='Referrer-Policy value')
    parser.add_argument('--report-only', action='store_true', default=settings.csp_report_only,
                        help='Send the CSP as Content-Security-Policy-Report-Only')
    parser.add_argument('--json', action='store_true', help='Output a JSON object')

    args = parser.parse_args(argv)

    try:
        headers = build_headers(args.policy, args.frame, args.referrer, args.report_only)
    except PolicyConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.json:
        output = {}
        for name, value in canonical_items(headers):
            output.setdefault(name, []).append(value)
        print(json.dumps(output, indent=2))
    else:
        for name, value in canonical_items(headers):
            print(f"{name}: {value}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
