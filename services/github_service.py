# ================================================================
# services/github_service.py: GitHub OAuth code exchange
# ================================================================
import logging
from typing import Optional

import httpx
from pydantic import BaseModel, ValidationError

from core.config import settings
from core.errors import BadRequestError

logger = logging.getLogger(__name__)

GITHUB_AUTHORIZE_URL = "https://github.com/login/oauth/authorize"
GITHUB_ACCESS_TOKEN_URL = "https://github.com/login/oauth/access_token"
GITHUB_USER_URL = "https://api.github.com/user"


class GitHubAccessToken(BaseModel):
    access_token: str
    token_type: str
    scope: str = ""


class GitHubUser(BaseModel):
    id: int
    avatar_url: str
    name: Optional[str] = None
    email: Optional[str] = None


class GitHubOAuthService:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        transport: Optional[httpx.BaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.transport = transport
        self.timeout = timeout

    def authorize_url(self, scope: str = "user") -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": scope,
        }
        return str(httpx.URL(GITHUB_AUTHORIZE_URL, params=params))

    def _client(self) -> httpx.Client:
        return httpx.Client(transport=self.transport, timeout=self.timeout)

    def exchange_code(self, code: str) -> str:
        """Trade an OAuth ``code`` for a GitHub access token."""
        params = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
            "code": code,
        }
        with self._client() as client:
            response = client.post(
                GITHUB_ACCESS_TOKEN_URL,
                params=params,
                headers={"Accept": "application/json"},
            )
        response.raise_for_status()

        try:
            token = GitHubAccessToken.model_validate(response.json())
        except ValidationError:
            logger.warning("GitHub rejected the oAuth code: %s", response.text)
            raise BadRequestError("Invalid GitHub oAuth code.")
        return token.access_token

    def get_user(self, access_token: str) -> GitHubUser:
        with self._client() as client:
            response = client.get(
                GITHUB_USER_URL,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        response.raise_for_status()
        return GitHubUser.model_validate(response.json())


github_service = GitHubOAuthService(
    client_id=settings.GITHUB_OAUTH_CLIENT_ID,
    client_secret=settings.GITHUB_OAUTH_CLIENT_SECRET,
    redirect_uri=settings.GITHUB_OAUTH_CLIENT_REDIRECT_URI,
)


def get_github_service() -> GitHubOAuthService:
    return github_service
