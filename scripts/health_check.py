#!/usr/bin/env python3
"""External health check for chain-gateway.

Pings the API's /health endpoint and, with --deep, one block lookup per
chain so an unreachable node shows up too. Exits with code 1 on failure
for easy integration with monitoring tools.

Usage:
    python scripts/health_check.py
    python scripts/health_check.py --deep --height 1
    python scripts/health_check.py --webhook https://hooks.slack.com/...

Environment:
    HEALTH_CHECK_URL     - Override the default API base URL
    HEALTH_CHECK_WEBHOOK - Webhook URL for failure notifications
"""

from __future__ import annotations

import argparse
import os
import sys
import time

import requests


DEFAULT_URL = "http://localhost:3000"
TIMEOUT_SECONDS = 15


def check_health(base_url: str) -> tuple[bool, str]:
    """Ping the health endpoint. Returns (ok, detail)."""
    url = base_url.rstrip("/") + "/health"
    try:
        resp = requests.get(url, timeout=TIMEOUT_SECONDS)
        if resp.status_code != 200:
            return False, f"status={resp.status_code} body={resp.text[:200]}"
        data = resp.json()
        if data.get("status") != "ok":
            return False, f"unexpected body: {data}"
        return True, f"ok ({resp.elapsed.total_seconds():.2f}s)"
    except requests.Timeout:
        return False, f"timeout after {TIMEOUT_SECONDS}s"
    except requests.ConnectionError as e:
        return False, f"connection error: {e}"
    except ValueError as e:
        return False, f"invalid JSON from health endpoint: {e}"


def check_chain(base_url: str, chain: str, height: int) -> tuple[bool, str]:
    """Fetch one block through the API. A 502 means the node is unreachable."""
    url = f"{base_url.rstrip('/')}/{chain}/block/{height}"
    try:
        resp = requests.get(url, timeout=TIMEOUT_SECONDS * 3)
    except requests.RequestException as e:
        return False, f"{chain}: request failed: {e}"
    if resp.status_code == 502:
        return False, f"{chain}: node unavailable: {resp.text[:200]}"
    return True, f"{chain}: status={resp.status_code}"


def notify_webhook(webhook_url: str, message: str) -> None:
    """Send failure alert to a webhook (Slack/Discord compatible)."""
    try:
        requests.post(
            webhook_url,
            json={"text": message, "content": message},
            timeout=10,
        )
    except requests.RequestException as e:
        print(f"[WARN] webhook notification failed: {e}", file=sys.stderr)


def main() -> None:
    parser = argparse.ArgumentParser(description="chain-gateway health check")
    parser.add_argument(
        "--url",
        default=os.environ.get("HEALTH_CHECK_URL", DEFAULT_URL),
        help=f"API base URL (default: {DEFAULT_URL})",
    )
    parser.add_argument(
        "--webhook",
        default=os.environ.get("HEALTH_CHECK_WEBHOOK", ""),
        help="Webhook URL for failure alerts (Slack/Discord)",
    )
    parser.add_argument(
        "--deep",
        action="store_true",
        help="Also fetch a block from each chain",
    )
    parser.add_argument("--height", type=int, default=1)
    args = parser.parse_args()

    ts = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())
    results = [check_health(args.url)]
    if args.deep:
        results += [check_chain(args.url, c, args.height) for c in ("evm", "cosmos")]

    failures = [detail for ok, detail in results if not ok]
    if not failures:
        print(f"[{ts}] OK: " + "; ".join(detail for _, detail in results))
        sys.exit(0)

    msg = f"[{ts}] FAIL: chain-gateway health check failed: " + "; ".join(failures)
    print(msg, file=sys.stderr)
    if args.webhook:
        notify_webhook(args.webhook, msg)
    sys.exit(1)


if __name__ == "__main__":
    main()
