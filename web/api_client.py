# ================================================================
# web/api_client.py: HTTP client for the backend API
# ================================================================
import logging
from typing import Any, Dict, Optional

import httpx

from core.config import settings

logger = logging.getLogger(__name__)


def api_error_message(error: httpx.HTTPStatusError) -> Optional[str]:
    """Return the ``message`` field of an API error body, if any."""
    try:
        body = error.response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message")
    return None


class ApiClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.base_url = (base_url or settings.API_URL).rstrip("/")
        self.token = token
        self.transport = transport
        self.timeout = timeout

    def with_token(self, token: str) -> "ApiClient":
        return ApiClient(self.base_url, token, self.transport, self.timeout)

    def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        with httpx.Client(base_url=self.base_url, transport=self.transport, timeout=self.timeout) as client:
            response = client.request(method, path, headers=headers, **kwargs)

        response.raise_for_status()
        return response

    # ------------------------
    # Sessions & accounts
    # ------------------------
    def sign_in_with_password(self, email: str, password: str) -> str:
        response = self._request("POST", "/sessions/password", json={"email": email, "password": password})
        return response.json()["token"]

    def sign_in_with_github(self, code: str) -> str:
        response = self._request("POST", "/sessions/github", json={"code": code})
        return response.json()["token"]

    def sign_up(self, name: str, email: str, password: str) -> None:
        self._request("POST", "/users", json={"name": name, "email": email, "password": password})

    def get_profile(self) -> Dict[str, Any]:
        return self._request("GET", "/profile").json()["user"]

    # ------------------------
    # Invites
    # ------------------------
    def get_invite(self, invite_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/invites/{invite_id}").json()["invite"]

    def accept_invite(self, invite_id: str) -> None:
        self._request("POST", f"/invites/{invite_id}/accept")

    # ------------------------
    # Organizations
    # ------------------------
    def get_membership(self, slug: str) -> Dict[str, Any]:
        return self._request("GET", f"/organizations/{slug}/membership").json()["membership"]

    def get_billing(self, slug: str) -> Dict[str, Any]:
        return self._request("GET", f"/organizations/{slug}/billing").json()["billing"]
