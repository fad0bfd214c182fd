"""Query a running alert state historian from the command line.

Usage:
    uv run python -m src.cli --org-id 1 --rule-uid my-rule --limit 20
    uv run python -m src.cli --org-id 1 --current alerting --label env=prod
"""

import argparse
import logging
import sys
from datetime import UTC, datetime
from typing import Any

import httpx

from src.historian.models import AlertState, AlertStateQueryResponse

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s: %(message)s",
)

DEFAULT_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_SECONDS = 30
QUERY_PATH = "/apis/alerting.historian.grafana.app/v0alpha1/namespaces/{namespace}/alertstate/query"


def _parse_label(raw: str) -> tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"label must be key=value, got {raw!r}")
    return key, value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Query alert state history")
    parser.add_argument("--url", default=DEFAULT_URL, help=f"Service base URL (default: {DEFAULT_URL})")
    parser.add_argument("--namespace", default="default", help="API namespace (default: default)")
    parser.add_argument("--org-id", type=int, required=True, help="Org to query as")
    parser.add_argument("--from", dest="from_", type=int, help="Start of range, epoch seconds")
    parser.add_argument("--to", type=int, help="End of range, epoch seconds")
    parser.add_argument("--limit", type=int, help="Maximum number of entries")
    parser.add_argument("--rule-uid", help="Alert rule UID")
    parser.add_argument("--dashboard-uid", help="Dashboard UID")
    parser.add_argument("--panel-id", type=int, help="Panel ID")
    states = [s.value for s in AlertState]
    parser.add_argument("--previous", choices=states, help="State before the transition")
    parser.add_argument("--current", choices=states, help="State after the transition")
    parser.add_argument(
        "--label",
        type=_parse_label,
        action="append",
        default=None,
        help="Label filter as key=value (can be repeated)",
    )
    return parser


def build_request_body(args: argparse.Namespace) -> dict[str, Any]:
    """Map parsed arguments to a request body, leaving out unset options."""
    fields = {
        "from": args.from_,
        "to": args.to,
        "limit": args.limit,
        "ruleUID": args.rule_uid,
        "dashboardUID": args.dashboard_uid,
        "panelID": args.panel_id,
        "previous": args.previous,
        "current": args.current,
    }
    body: dict[str, Any] = {k: v for k, v in fields.items() if v is not None}
    if args.label:
        body["labels"] = dict(args.label)
    return body


def format_entries(response: AlertStateQueryResponse) -> str:
    """One ``timestamp<TAB>line`` row per entry."""
    if not response.entries:
        return "No alert state history found."
    lines: list[str] = []
    for entry in response.entries:
        ts = datetime.fromtimestamp(entry.timestamp / 1_000_000_000, tz=UTC).isoformat()
        lines.append(f"{ts}\t{entry.line}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    """Send one query and print the entries."""
    args = build_parser().parse_args(argv)
    url = args.url.rstrip("/") + QUERY_PATH.format(namespace=args.namespace)

    try:
        resp = httpx.post(
            url,
            json=build_request_body(args),
            headers={"X-Grafana-Org-Id": str(args.org_id)},
            timeout=DEFAULT_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as e:
        print(f"Request failed: {e}", file=sys.stderr)
        sys.exit(1)

    if resp.status_code != 200:
        try:
            message = resp.json().get("message", resp.text)
        except ValueError:
            message = resp.text
        print(f"Error {resp.status_code}: {message}", file=sys.stderr)
        sys.exit(1)

    print(format_entries(AlertStateQueryResponse.model_validate(resp.json())))


if __name__ == "__main__":
    main()
