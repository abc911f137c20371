# backend/pestscan/services/capture_pipeline/supabase_client.py
"""
Hosted Backend Client

Thin requests wrapper for the hosted backend's storage, edge-function and
REST endpoints. Every call sends the project API key both as `apikey` and as
a bearer token.
"""

from typing import Any, Dict, Optional

import requests

from ...config import settings


class HostedBackendClient:
    """Shared HTTP session and auth headers for hosted backend services."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.supabase_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.supabase_key
        self.session = session or requests.Session()

    def url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def headers(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
        }
        if extra:
            headers.update(extra)
        return headers

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """
        Send a request to the hosted backend.

        No timeout is applied; uploads and detection may run as long as the
        backend needs.
        """
        return self.session.request(
            method, self.url(path), headers=self.headers(headers), **kwargs
        )

    def close(self) -> None:
        self.session.close()


def error_message(response: requests.Response) -> str:
    """Best-effort human readable error from a backend response."""
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error", "msg", "error_description"):
            value = body.get(key)
            if value:
                return str(value)

    text = (response.text or "").strip()
    return text or f"HTTP {response.status_code}"
