#!/usr/bin/env python3
"""
Mint an FCM access token from a service account.

Useful for checking a service account key before deploying, or for sending
a test message with curl.

Usage:
    python mint-token.py --credentials service-account.json

    # Print the signed JWT assertion only (no network call)
    python mint-token.py --credentials service-account.json --assertion-only

Or via environment variables:
    export SERVICE_ACCOUNT_JSON="$(cat service-account.json)"
    python mint-token.py
"""
import argparse
import asyncio
import os
import sys

import httpx

from send_push.assertion import build_assertion
from send_push.credentials import ServiceAccountCredential
from send_push.errors import PushError
from send_push.minter import TokenMinter


async def mint(credential: ServiceAccountCredential) -> str:
    async with httpx.AsyncClient(timeout=10.0) as client:
        token = await TokenMinter(client).mint(credential)
    return token.value


def main():
    parser = argparse.ArgumentParser(
        description="Mint an FCM access token from a service account",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        "--credentials",
        help="Path to the service account JSON file (default: SERVICE_ACCOUNT_JSON env var)"
    )
    parser.add_argument(
        "--assertion-only",
        action="store_true",
        help="Print the signed JWT assertion instead of exchanging it"
    )
    args = parser.parse_args()

    if args.credentials:
        try:
            with open(args.credentials) as f:
                raw = f.read()
        except OSError as e:
            print(f"Error reading {args.credentials}: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        raw = os.environ.get("SERVICE_ACCOUNT_JSON", "")

    try:
        credential = ServiceAccountCredential.from_json(raw)
        if args.assertion_only:
            print(build_assertion(credential).encode())
        else:
            print(asyncio.run(mint(credential)))
    except PushError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
