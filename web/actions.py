# web/actions.py
import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx
from fastapi import Response

from core.config import settings
from web.api_client import ApiClient, api_error_message
from web.forms import SignInForm, SignUpForm, parse_form

logger = logging.getLogger(__name__)

TOKEN_COOKIE = "token"
INVITE_COOKIE = "invite"
GENERIC_ERROR_MESSAGE = "Sorry, something went wrong. Please try again later."


def form_state(
    success: bool,
    message: Optional[str] = None,
    errors: Optional[Dict[str, List[str]]] = None,
) -> Dict[str, Any]:
    return {"success": success, "message": message, "errors": errors}


def set_token_cookie(response: Response, token: str) -> None:
    response.set_cookie(TOKEN_COOKIE, token, path="/", max_age=settings.ACCESS_TOKEN_MAX_AGE)


def _failure_from(error: Exception) -> Dict[str, Any]:
    if isinstance(error, httpx.HTTPStatusError):
        return form_state(False, message=api_error_message(error) or GENERIC_ERROR_MESSAGE)
    logger.error("API request failed: %s", error)
    return form_state(False, message=GENERIC_ERROR_MESSAGE)


# ============================================================
# ✅ Sign in with e-mail & password
# ============================================================
def sign_in_with_email_and_password(
    data: Mapping[str, str],
    client: ApiClient,
    cookies: Mapping[str, str],
    response: Response,
) -> Dict[str, Any]:
    form, errors = parse_form(SignInForm, data)
    if errors:
        return form_state(False, errors=errors)

    try:
        token = client.sign_in_with_password(form.email, form.password)
    except (httpx.HTTPError, ValueError, KeyError) as error:
        return _failure_from(error)

    set_token_cookie(response, token)

    # Invite opened before signing in
    invite_id = cookies.get(INVITE_COOKIE)
    if invite_id:
        try:
            client.with_token(token).accept_invite(invite_id)
            response.delete_cookie(INVITE_COOKIE, path="/")
        except httpx.HTTPError as error:
            logger.warning("Could not accept invite %s after sign in: %s", invite_id, error)

    return form_state(True)


# ============================================================
# ✅ Sign up
# ============================================================
def sign_up(data: Mapping[str, str], client: ApiClient) -> Dict[str, Any]:
    form, errors = parse_form(SignUpForm, data)
    if errors:
        return form_state(False, errors=errors)

    try:
        client.sign_up(form.name, form.email, form.password)
    except (httpx.HTTPError, ValueError, KeyError) as error:
        return _failure_from(error)

    return form_state(True)
