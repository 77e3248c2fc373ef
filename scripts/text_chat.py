#!/usr/bin/env python3

from __future__ import annotations

import argparse
import sys

import httpx


def _print_reply(data: dict) -> None:
    reply = (data.get("reply") or "").strip()
    print(f"agent> {reply}" if reply else "agent> (empty response)")

    classification = data.get("classification")
    confidence = data.get("confidence")
    escalated = data.get("escalated")
    print(f"(classification: {classification} confidence={confidence} escalated={escalated})")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Interactive WhatsApp simulator via /simulate")
    parser.add_argument("--base-url", default="http://localhost:8000", help="API base URL (default: http://localhost:8000)")
    parser.add_argument("--from", dest="sender", default="whatsapp:+15555550123", help="Simulated sender id")
    parser.add_argument("--timeout", type=float, default=45.0, help="HTTP timeout seconds (default: 45)")
    args = parser.parse_args(argv)

    base_url = args.base_url.rstrip("/")

    print("WhatsApp simulator started. Type /exit to quit.")

    with httpx.Client(timeout=args.timeout) as client:
        while True:
            try:
                user_text = input("you> ").strip()
            except (EOFError, KeyboardInterrupt):
                print()
                break

            if not user_text:
                continue
            if user_text.lower() in {"/exit", "/quit", "exit", "quit"}:
                break

            try:
                resp = client.post(f"{base_url}/simulate", json={"message": user_text, "from": args.sender})
                resp.raise_for_status()
                data = resp.json()
            except httpx.HTTPStatusError as e:
                print(f"error> HTTP {e.response.status_code}: {e.response.text}")
                continue
            except httpx.HTTPError as e:
                print(f"error> {e}")
                continue

            _print_reply(data)

    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
