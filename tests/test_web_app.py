import json
from typing import Any, Dict, List, Tuple

import httpx
import pytest
from fastapi import Request
from fastapi.testclient import TestClient

from services.github_service import GitHubOAuthService, get_github_service
from web.actions import GENERIC_ERROR_MESSAGE, TOKEN_COOKIE
from web.api_client import ApiClient, api_error_message
from web.app import app as web_app
from web.app import get_api_client
from web.forms import SignInForm, SignUpForm, parse_form

API_URL = "http://api.test"


class FakeApi:
    """Canned backend responses keyed by method and path."""

    def __init__(self):
        self.routes: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.requests: List[httpx.Request] = []
        self.unreachable = False

    def reply(self, method: str, path: str, status_code: int, body: Any = None) -> None:
        self.routes[(method, path)] = (status_code, body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.unreachable:
            raise httpx.ConnectError("Connection refused", request=request)
        status_code, body = self.routes.get((request.method, request.url.path), (404, {"message": "Not found."}))
        if body is None:
            return httpx.Response(status_code)
        return httpx.Response(status_code, json=body)

    def paths(self) -> List[Tuple[str, str]]:
        return [(request.method, request.url.path) for request in self.requests]


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def web(api):
    transport = httpx.MockTransport(api.handler)

    def get_api_client_override(request: Request) -> ApiClient:
        return ApiClient(base_url=API_URL, token=request.cookies.get(TOKEN_COOKIE), transport=transport)

    web_app.dependency_overrides[get_api_client] = get_api_client_override
    client = TestClient(web_app, follow_redirects=False)
    yield client
    web_app.dependency_overrides.clear()


def _set_cookies(response) -> List[str]:
    return response.headers.get_list("set-cookie")


# ---------------------------
# Forms
# ---------------------------
def test_sign_up_form_messages():
    form, errors = parse_form(
        SignUpForm,
        {"name": "John", "email": "john@", "password": "123", "password_confirmation": "123"},
    )

    assert form is None
    assert errors == {
        "name": ["Please enter your full name."],
        "email": ["Please enter a valid email."],
        "password": ["Password should be at least 6 characters."],
    }


def test_sign_up_form_password_mismatch():
    _, errors = parse_form(
        SignUpForm,
        {"name": "John Doe", "email": "john@acme.com", "password": "123456", "password_confirmation": "654321"},
    )

    assert errors == {"password_confirmation": ["Passwords do not match."]}


def test_sign_up_form_reports_mismatch_next_to_short_password():
    _, errors = parse_form(
        SignUpForm,
        {"name": "John Doe", "email": "john@acme.com", "password": "123", "password_confirmation": "999"},
    )

    assert errors == {
        "password": ["Password should be at least 6 characters."],
        "password_confirmation": ["Passwords do not match."],
    }


@pytest.mark.parametrize("email", ["Bob <bob@acme.com>", "<bob@acme.com>", "bob@acme.com>"])
def test_sign_in_form_rejects_named_addresses(email):
    form, errors = parse_form(SignInForm, {"email": email, "password": "x"})

    assert form is None
    assert errors == {"email": ["Please enter a valid email."]}


def test_sign_in_form_normalizes_email():
    form, errors = parse_form(SignInForm, {"email": "Bob@Acme.com", "password": "x"})

    assert errors is None
    assert form.email == "bob@acme.com"


def test_api_error_message_without_json_body():
    request = httpx.Request("GET", f"{API_URL}/profile")
    response = httpx.Response(502, text="Bad gateway", request=request)
    error = httpx.HTTPStatusError("bad gateway", request=request, response=response)

    assert api_error_message(error) is None


# ---------------------------
# Sign in / sign up
# ---------------------------
def test_sign_in_sets_token_cookie(web, api):
    api.reply("POST", "/sessions/password", 201, {"token": "jwt-1"})

    response = web.post("/auth/sign-in", data={"email": "John@Acme.com", "password": "123456"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": None, "errors": None}
    assert response.cookies[TOKEN_COOKIE] == "jwt-1"
    assert json.loads(api.requests[0].content) == {"email": "john@acme.com", "password": "123456"}


def test_sign_in_accepts_pending_invite(web, api):
    api.reply("POST", "/sessions/password", 201, {"token": "jwt-1"})
    api.reply("POST", "/invites/inv-1/accept", 204)
    web.cookies.set("invite", "inv-1")

    response = web.post("/auth/sign-in", data={"email": "john@acme.com", "password": "123456"})

    assert response.json()["success"] is True
    assert api.paths() == [("POST", "/sessions/password"), ("POST", "/invites/inv-1/accept")]
    assert api.requests[1].headers["Authorization"] == "Bearer jwt-1"
    assert any(cookie.startswith("invite=") and "Max-Age=0" in cookie for cookie in _set_cookies(response))


def test_sign_in_survives_failed_invite_accept(web, api):
    api.reply("POST", "/sessions/password", 201, {"token": "jwt-1"})
    api.reply("POST", "/invites/inv-1/accept", 400, {"message": "This invite belongs to another user."})
    web.cookies.set("invite", "inv-1")

    response = web.post("/auth/sign-in", data={"email": "john@acme.com", "password": "123456"})

    assert response.json() == {"success": True, "message": None, "errors": None}
    assert response.cookies[TOKEN_COOKIE] == "jwt-1"
    assert api.paths() == [("POST", "/sessions/password"), ("POST", "/invites/inv-1/accept")]
    assert not any(cookie.startswith("invite=") for cookie in _set_cookies(response))


def test_sign_in_with_unreachable_api(web, api):
    api.unreachable = True

    response = web.post("/auth/sign-in", data={"email": "john@acme.com", "password": "123456"})

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": GENERIC_ERROR_MESSAGE, "errors": None}
    assert TOKEN_COOKIE not in response.cookies


def test_sign_in_with_malformed_api_reply(web, api):
    api.reply("POST", "/sessions/password", 201, {"unexpected": "shape"})

    response = web.post("/auth/sign-in", data={"email": "john@acme.com", "password": "123456"})

    assert response.json() == {"success": False, "message": GENERIC_ERROR_MESSAGE, "errors": None}
    assert TOKEN_COOKIE not in response.cookies


def test_sign_up_with_unreachable_api(web, api):
    api.unreachable = True

    response = web.post(
        "/auth/sign-up",
        data={
            "name": "John Doe",
            "email": "john@acme.com",
            "password": "123456",
            "password_confirmation": "123456",
        },
    )

    assert response.json() == {"success": False, "message": GENERIC_ERROR_MESSAGE, "errors": None}


def test_sign_in_shows_api_error(web, api):
    api.reply("POST", "/sessions/password", 400, {"message": "Invalid credentials."})

    response = web.post("/auth/sign-in", data={"email": "john@acme.com", "password": "wrong"})

    assert response.json() == {"success": False, "message": "Invalid credentials.", "errors": None}
    assert TOKEN_COOKIE not in response.cookies


def test_sign_in_validates_before_calling_api(web, api):
    response = web.post("/auth/sign-in", data={"email": "nope"})

    assert response.json() == {
        "success": False,
        "message": None,
        "errors": {
            "email": ["Please enter a valid email."],
            "password": ["Please enter a password."],
        },
    }
    assert api.requests == []


def test_sign_up(web, api):
    api.reply("POST", "/users", 201)

    response = web.post(
        "/auth/sign-up",
        data={
            "name": "John Doe",
            "email": "john@acme.com",
            "password": "123456",
            "password_confirmation": "123456",
        },
    )

    assert response.json()["success"] is True
    assert json.loads(api.requests[0].content) == {
        "name": "John Doe",
        "email": "john@acme.com",
        "password": "123456",
    }


def test_sign_up_with_existing_email(web, api):
    api.reply("POST", "/users", 400, {"message": "User with same e-mail already exists."})

    response = web.post(
        "/auth/sign-up",
        data={
            "name": "John Doe",
            "email": "john@acme.com",
            "password": "123456",
            "password_confirmation": "123456",
        },
    )

    assert response.json() == {
        "success": False,
        "message": "User with same e-mail already exists.",
        "errors": None,
    }


def test_sign_out_drops_token(web):
    web.cookies.set(TOKEN_COOKIE, "jwt-1")

    response = web.get("/auth/sign-out")

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/sign-in"
    assert any(cookie.startswith(f"{TOKEN_COOKIE}=") and "Max-Age=0" in cookie for cookie in _set_cookies(response))


# ---------------------------
# GitHub
# ---------------------------
def test_github_sign_in_redirects_to_authorize(web):
    web_app.dependency_overrides[get_github_service] = lambda: GitHubOAuthService(
        client_id="client-id",
        client_secret="secret",
        redirect_uri="http://localhost:3000/api/auth/callback",
    )

    response = web.get("/auth/sign-in/github")

    assert response.status_code == 307
    location = response.headers["location"]
    assert location.startswith("https://github.com/login/oauth/authorize?")
    assert "client_id=client-id" in location


def test_github_callback_without_code(web, api):
    response = web.get("/api/auth/callback")

    assert response.status_code == 400
    assert response.text == "Missing GitHub oAuth code"
    assert api.requests == []


def test_github_callback_signs_in(web, api):
    api.reply("POST", "/sessions/github", 201, {"token": "jwt-gh"})

    response = web.get("/api/auth/callback", params={"code": "abc"})

    assert response.status_code == 307
    assert response.headers["location"] == "http://testserver/"
    assert response.cookies[TOKEN_COOKIE] == "jwt-gh"
    assert json.loads(api.requests[0].content) == {"code": "abc"}


def test_github_callback_with_rejected_code(web, api):
    api.reply("POST", "/sessions/github", 400, {"message": "Invalid GitHub oAuth code."})

    response = web.get("/api/auth/callback", params={"code": "bad"})

    assert response.status_code == 400
    assert response.json() == {"message": "Invalid GitHub oAuth code."}


# ---------------------------
# Invites
# ---------------------------
INVITE = {
    "id": "inv-1",
    "email": "newbie@example.com",
    "role": "MEMBER",
    "created_at": "2024-01-01T00:00:00",
    "author": None,
    "organization": {"name": "Acme Inc"},
}


def test_invite_page_for_signed_in_invitee(web, api):
    api.reply("GET", "/invites/inv-1", 200, {"invite": INVITE})
    api.reply("GET", "/profile", 200, {"user": {"id": "u1", "name": "New", "email": "Newbie@example.com"}})
    web.cookies.set(TOKEN_COOKIE, "jwt-1")

    response = web.get("/invite/inv-1")

    assert response.status_code == 200
    body = response.json()
    assert body["invite"]["organization"]["name"] == "Acme Inc"
    assert body["is_user_authenticated"] is True
    assert body["user_is_authenticated_with_same_email"] is True


def test_accept_invite_without_session_remembers_invite(web, api):
    api.reply("GET", "/invites/inv-1", 200, {"invite": INVITE})

    response = web.post("/invite/inv-1/accept")

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/sign-in?email=newbie%40example.com"
    assert response.cookies["invite"] == "inv-1"


def test_accept_invite_with_session(web, api):
    api.reply("POST", "/invites/inv-1/accept", 204)
    web.cookies.set(TOKEN_COOKIE, "jwt-1")

    response = web.post("/invite/inv-1/accept")

    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert api.requests[0].headers["Authorization"] == "Bearer jwt-1"


# ---------------------------
# Billing
# ---------------------------
def _membership(role: str) -> Dict[str, Any]:
    return {"membership": {"id": "m1", "role": role, "organization_id": "o1", "user_id": "u1"}}


def test_billing_page_requires_session(web, api):
    response = web.get("/org/acme-inc/billing")

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/sign-in"
    assert api.requests == []


def test_billing_page_hidden_from_members(web, api):
    api.reply("GET", "/organizations/acme-inc/membership", 200, _membership("MEMBER"))
    web.cookies.set(TOKEN_COOKIE, "jwt-1")

    response = web.get("/org/acme-inc/billing")

    assert response.json() == {"organization": "acme-inc", "can_get_billing": False, "billing": None}
    assert api.paths() == [("GET", "/organizations/acme-inc/membership")]


def test_billing_page_for_admin(web, api):
    billing = {
        "seats": {"amount": 2, "unit": 10, "price": 20},
        "projects": {"amount": 1, "unit": 20, "price": 20},
        "total": 40,
    }
    api.reply("GET", "/organizations/acme-inc/membership", 200, _membership("ADMIN"))
    api.reply("GET", "/organizations/acme-inc/billing", 200, {"billing": billing})
    web.cookies.set(TOKEN_COOKIE, "jwt-1")

    response = web.get("/org/acme-inc/billing")

    assert response.json() == {"organization": "acme-inc", "can_get_billing": True, "billing": billing}


def test_expired_session_is_signed_out(web, api):
    api.reply("GET", "/organizations/acme-inc/membership", 401, {"message": "Invalid auth token"})
    web.cookies.set(TOKEN_COOKIE, "expired")

    response = web.get("/org/acme-inc/billing")

    assert response.status_code == 303
    assert response.headers["location"] == "/auth/sign-out"
