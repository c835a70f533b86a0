#!/usr/bin/env python3
"""Smoke test for a deployed API. Verifies /health, the block palette and a public site render.

Run with: python scripts/smoke_prod.py
Requires: API running at API_BASE. SMOKE_HOST (optional) is a published subdomain or custom domain to fetch.
"""

import os
import sys

import requests

API_BASE = os.getenv("API_BASE", "http://localhost:8000").rstrip("/")
TENANT = os.getenv("SMOKE_TENANT", "smoke")
SMOKE_HOST = os.getenv("SMOKE_HOST", "").strip()
AUTH_HEADER = f"Bearer tenant:{TENANT}"


def _get(path: str, auth: bool = True) -> requests.Response:
    headers = {"Authorization": AUTH_HEADER} if auth else {}
    return requests.get(f"{API_BASE}{path}", headers=headers, timeout=30)


def main() -> int:
    failures: list[str] = []

    print("1. GET /health ...")
    try:
        r = _get("/health", auth=False)
        if r.status_code != 200 or not r.json().get("ok"):
            failures.append(f"/health => {r.status_code}")
        else:
            print(f"   ok ({r.json().get('block_types')} block types)")
    except requests.RequestException as e:
        print(f"   FAIL: {e}")
        return 1

    print("2. GET /blocks ...")
    try:
        r = _get("/blocks")
        if r.status_code != 200:
            failures.append(f"/blocks => {r.status_code}")
        elif not any(b.get("type") == "hero" for b in r.json()):
            failures.append("/blocks => hero block missing")
        else:
            print("   ok")
    except requests.RequestException as e:
        failures.append(f"/blocks => {e}")

    print("3. GET /site/<unknown> ...")
    try:
        r = _get("/site/smoke-missing-host-0000", auth=False)
        if r.status_code != 404:
            failures.append(f"/site/<unknown> => {r.status_code}, expected 404")
        else:
            print("   404 ok")
    except requests.RequestException as e:
        failures.append(f"/site/<unknown> => {e}")

    if SMOKE_HOST:
        print(f"4. GET /site/{SMOKE_HOST} ...")
        try:
            r = _get(f"/site/{SMOKE_HOST}", auth=False)
            if r.status_code != 200 or "<html" not in r.text.lower():
                failures.append(f"/site/{SMOKE_HOST} => {r.status_code}")
            else:
                print(f"   200 ok (cache {r.headers.get('X-Render-Cache', '?')})")
        except requests.RequestException as e:
            failures.append(f"/site/{SMOKE_HOST} => {e}")

    if failures:
        print("\nFAILURES:", failures)
        return 1
    print("\nSmoke passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
