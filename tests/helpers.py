"""Shared helpers for storesync tests."""

import json

import httpx

SITE = "test-store.myshopify.com"
BASE_URL = f"https://{SITE}/admin/api/2023-10"


def json_response(body: object, status_code: int = 200, **headers: str) -> httpx.Response:
    """JSON response for MockTransport handlers."""
    return httpx.Response(
        status_code,
        content=json.dumps(body).encode(),
        headers={"content-type": "application/json", **headers},
    )
