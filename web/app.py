# ================================================================
# web/app.py: frontend-facing routes consuming the backend API
# ================================================================
import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from fastapi import Depends, FastAPI, Form, Request, Response, status
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse

from core.permissions import get_user_permissions
from services.github_service import GitHubOAuthService, get_github_service
from web.actions import (
    INVITE_COOKIE,
    TOKEN_COOKIE,
    set_token_cookie,
    sign_in_with_email_and_password,
    sign_up,
)
from web.api_client import ApiClient, api_error_message

logger = logging.getLogger(__name__)

app = FastAPI(title="SaaS RBAC Web")

SIGN_IN_PATH = "/auth/sign-in"


def get_api_client(request: Request) -> ApiClient:
    return ApiClient(token=request.cookies.get(TOKEN_COOKIE))


# =========================================
# ⚠️ API errors
# =========================================
@app.exception_handler(httpx.HTTPStatusError)
async def api_error_handler(request: Request, exc: httpx.HTTPStatusError):
    # An expired or foreign session is dropped before anything else
    if exc.response.status_code == status.HTTP_401_UNAUTHORIZED and request.cookies.get(TOKEN_COOKIE):
        return RedirectResponse("/auth/sign-out", status_code=status.HTTP_303_SEE_OTHER)
    return JSONResponse(
        status_code=exc.response.status_code,
        content={"message": api_error_message(exc)},
    )


# =========================================
# 🔐 Authentication
# =========================================
@app.post("/auth/sign-in")
def sign_in_action(
    request: Request,
    response: Response,
    email: str = Form(default=""),
    password: str = Form(default=""),
    client: ApiClient = Depends(get_api_client),
):
    return sign_in_with_email_and_password(
        {"email": email, "password": password},
        client,
        request.cookies,
        response,
    )


@app.post("/auth/sign-up")
def sign_up_action(
    name: str = Form(default=""),
    email: str = Form(default=""),
    password: str = Form(default=""),
    password_confirmation: str = Form(default=""),
    client: ApiClient = Depends(get_api_client),
):
    return sign_up(
        {
            "name": name,
            "email": email,
            "password": password,
            "password_confirmation": password_confirmation,
        },
        client,
    )


@app.get("/auth/sign-in/github")
def sign_in_with_github(github: GitHubOAuthService = Depends(get_github_service)):
    return RedirectResponse(github.authorize_url(), status_code=status.HTTP_307_TEMPORARY_REDIRECT)


@app.get("/api/auth/callback")
def github_callback(
    request: Request,
    code: Optional[str] = None,
    client: ApiClient = Depends(get_api_client),
):
    if not code:
        return PlainTextResponse("Missing GitHub oAuth code", status_code=status.HTTP_400_BAD_REQUEST)

    token = client.sign_in_with_github(code)
    logger.info("GitHub sign in completed")

    redirect = RedirectResponse(
        str(request.url.replace(path="/", query="")),
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )
    set_token_cookie(redirect, token)
    return redirect


@app.get("/auth/sign-out")
def sign_out():
    redirect = RedirectResponse(SIGN_IN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    redirect.delete_cookie(TOKEN_COOKIE, path="/")
    return redirect


# =========================================
# ✉️ Invites
# =========================================
@app.get("/invite/{invite_id}")
def invite_page(invite_id: str, client: ApiClient = Depends(get_api_client)):
    invite = client.get_invite(invite_id)

    is_authenticated = client.token is not None
    same_email = False
    if is_authenticated:
        profile = client.get_profile()
        same_email = profile["email"].lower() == invite["email"].lower()

    return {
        "invite": invite,
        "is_user_authenticated": is_authenticated,
        "user_is_authenticated_with_same_email": same_email,
    }


@app.post("/invite/{invite_id}/accept")
def accept_invite_action(invite_id: str, client: ApiClient = Depends(get_api_client)):
    if client.token is None:
        # Accepted right after the next sign in
        invite = client.get_invite(invite_id)
        redirect = RedirectResponse(
            f"{SIGN_IN_PATH}?{urlencode({'email': invite['email']})}",
            status_code=status.HTTP_303_SEE_OTHER,
        )
        redirect.set_cookie(INVITE_COOKIE, invite_id, path="/")
        return redirect

    client.accept_invite(invite_id)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


# =========================================
# 💳 Billing
# =========================================
@app.get("/org/{slug}/billing")
def billing_page(slug: str, client: ApiClient = Depends(get_api_client)):
    if client.token is None:
        return RedirectResponse(SIGN_IN_PATH, status_code=status.HTTP_303_SEE_OTHER)

    membership = client.get_membership(slug)
    permissions = get_user_permissions(membership["user_id"], membership["role"])

    if permissions.cannot("get", "Billing"):
        return {"organization": slug, "can_get_billing": False, "billing": None}

    return {"organization": slug, "can_get_billing": True, "billing": client.get_billing(slug)}
