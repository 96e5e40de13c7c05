#!/usr/bin/env python3
"""
Simple health check script for the Person Directory API.

Returns exit code 0 if healthy, 1 otherwise. Uses the readiness probe, so
an API that cannot reach its database counts as unhealthy.

Usage:
    # Check default (localhost:8000)
    python scripts/healthcheck.py

    # Check specific URL
    python scripts/healthcheck.py http://localhost:8001

    # Use in Docker health check
    HEALTHCHECK CMD python scripts/healthcheck.py http://localhost:8000

Exit Codes:
    0 - API is healthy
    1 - API is unhealthy or unreachable
"""

from __future__ import annotations

import sys

import httpx


def check_health(base_url: str, timeout: float = 5.0) -> bool:
    """Check if the API readiness endpoint returns 200.

    Args:
        base_url: Base URL of the API (e.g., "http://localhost:8000")
        timeout: Request timeout in seconds

    Returns:
        True if healthy, False otherwise
    """
    ready_url = f"{base_url.rstrip('/')}/api/readyz"

    try:
        response = httpx.get(ready_url, timeout=timeout)
        return response.status_code == 200
    except httpx.RequestError:
        return False


def main() -> int:
    """Main entry point."""
    base_url = "http://localhost:8000"

    if len(sys.argv) > 1:
        arg = sys.argv[1]
        if arg in ("-h", "--help"):
            print(__doc__)
            return 0
        base_url = arg

    if check_health(base_url):
        print(f"OK: {base_url} is healthy")
        return 0
    print(f"FAIL: {base_url} is unhealthy or unreachable")
    return 1


if __name__ == "__main__":
    sys.exit(main())
