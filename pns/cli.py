from __future__ import annotations

import argparse
import json
import os
import sys

import requests


def _print(obj) -> None:
    print(json.dumps(obj, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="pns-ctl", description="Proxy Network Syncer status client")
    p.add_argument("--api", default=os.getenv("PNS_API_URL", "http://localhost:8089"), help="API base URL")
    p.add_argument("--user", default=os.getenv("PNS_API_USER"), help="Basic auth user")
    p.add_argument("--password", default=os.getenv("PNS_API_PASSWORD"), help="Basic auth password")
    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("health", help="Liveness of the sync loop")
    sub.add_parser("status", help="Loop phase, failure count and last plan")

    s_ev = sub.add_parser("events", help="Show the event journal")
    s_ev.add_argument("--limit", type=int, default=20)

    args = p.parse_args(argv)

    base = args.api.rstrip("/")
    auth = (args.user, args.password) if args.user and args.password else None

    try:
        if args.cmd == "health":
            r = requests.get(f"{base}/health", timeout=10)
        elif args.cmd == "status":
            r = requests.get(f"{base}/status", auth=auth, timeout=10)
        elif args.cmd == "events":
            r = requests.get(f"{base}/events", params={"limit": args.limit}, auth=auth, timeout=10)
        else:
            return 2
    except requests.RequestException as e:
        print(f"Unable to reach {base}: {e}", file=sys.stderr)
        return 1

    _print(r.json())
    return 0 if r.ok else 1


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
