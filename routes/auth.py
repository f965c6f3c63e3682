import logging
from datetime import datetime

from fastapi import APIRouter, BackgroundTasks, Depends, Response, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from core.config import settings
from core.database import get_session
from core.errors import BadRequestError, UnauthorizedError
from core.security import create_access_token, get_current_user_id, hash_password, verify_password
from core.utils import email_domain
from models.models import Account, AccountProvider, Member, Organization, Role, Token, TokenType, User
from schemas.user_schema import (
    GithubLogin,
    PasswordLogin,
    PasswordRecoverRequest,
    PasswordReset,
    ProfileResponse,
    TokenResponse,
    UserCreate,
    UserRead,
)
from services.email_service import EmailService, get_email_service
from services.github_service import GitHubOAuthService, get_github_service

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])


# ==========================================================
# ✅ Create account, joining a domain-attached organization
# ==========================================================
@router.post("/users", status_code=status.HTTP_201_CREATED)
def create_account(user_data: UserCreate, session: Session = Depends(get_session)):
    """Create a new user, auto-joining an organization that claims the e-mail domain."""
    email = user_data.email.lower()

    existing = session.exec(select(User).where(User.email == email)).first()
    if existing:
        raise BadRequestError("User with same e-mail already exists.")

    auto_join_organization = session.exec(
        select(Organization).where(
            Organization.domain == email_domain(email),
            Organization.should_attach_users_by_domain == True,  # noqa: E712
        )
    ).first()

    try:
        user = User(
            name=user_data.name,
            email=email,
            password_hash=hash_password(user_data.password),
        )
        session.add(user)
        session.flush()

        if auto_join_organization:
            session.add(
                Member(
                    user_id=user.id,
                    organization_id=auto_join_organization.id,
                    role=Role.MEMBER.value,
                )
            )
            logger.info("User %s auto-joined organization %s", email, auto_join_organization.slug)

        session.commit()
    except IntegrityError:
        session.rollback()
        raise BadRequestError("User with same e-mail already exists.")
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Database error during signup: %s", e)
        raise

    return Response(status_code=status.HTTP_201_CREATED)


# ==========================================================
# ✅ Login with e-mail & password
# ==========================================================
@router.post("/sessions/password", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def authenticate_with_password(credentials: PasswordLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == credentials.email.lower())).first()
    if not user:
        raise BadRequestError("Invalid credentials.")

    if user.password_hash is None:
        raise BadRequestError("User does not have a password, use social login.")

    if not verify_password(credentials.password, user.password_hash):
        raise BadRequestError("Invalid credentials.")

    return TokenResponse(token=create_access_token(user.id))


# ==========================================================
# ✅ Login with GitHub
# ==========================================================
@router.post("/sessions/github", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def authenticate_with_github(
    payload: GithubLogin,
    session: Session = Depends(get_session),
    github: GitHubOAuthService = Depends(get_github_service),
):
    access_token = github.exchange_code(payload.code)
    github_user = github.get_user(access_token)

    if github_user.email is None:
        raise BadRequestError("Your GitHub account must have an email to authenticate.")

    email = github_user.email.lower()
    user = session.exec(select(User).where(User.email == email)).first()
    if not user:
        user = User(name=github_user.name, email=email, avatar_url=github_user.avatar_url)
        session.add(user)
        session.flush()
        logger.info("Created user %s from GitHub login", email)

    account = session.exec(
        select(Account).where(
            Account.provider == AccountProvider.GITHUB.value,
            Account.user_id == user.id,
        )
    ).first()
    if not account:
        session.add(
            Account(
                provider=AccountProvider.GITHUB.value,
                provider_account_id=str(github_user.id),
                user_id=user.id,
            )
        )

    session.commit()
    return TokenResponse(token=create_access_token(user.id))


# ==========================================================
# ✅ Current profile
# ==========================================================
@router.get("/profile", response_model=ProfileResponse)
def get_profile(user_id: str = Depends(get_current_user_id), session: Session = Depends(get_session)):
    user = session.get(User, user_id)
    if not user:
        raise BadRequestError("User not found.")
    return ProfileResponse(user=UserRead.model_validate(user))


# ==========================================================
# ✅ Password recovery
# ==========================================================
@router.post("/password/recover", status_code=status.HTTP_201_CREATED)
def request_password_recover(
    payload: PasswordRecoverRequest,
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    mailer: EmailService = Depends(get_email_service),
):
    user = session.exec(select(User).where(User.email == payload.email.lower())).first()

    # Same response whether or not the e-mail is registered
    if not user:
        return Response(status_code=status.HTTP_201_CREATED)

    token = Token(type=TokenType.PASSWORD_RECOVER.value, user_id=user.id)
    session.add(token)
    session.commit()
    session.refresh(token)

    reset_link = f"{settings.FRONTEND_URL.rstrip('/')}/auth/reset-password?code={token.id}"
    background_tasks.add_task(mailer.send_password_recover_email, user.email, token.id, reset_link)

    return Response(status_code=status.HTTP_201_CREATED)


@router.post("/password/reset", status_code=status.HTTP_204_NO_CONTENT)
def reset_password(payload: PasswordReset, session: Session = Depends(get_session)):
    token = session.exec(
        select(Token).where(
            Token.id == payload.code,
            Token.type == TokenType.PASSWORD_RECOVER.value,
        )
    ).first()
    if not token:
        raise UnauthorizedError()

    user = session.get(User, token.user_id)
    if not user:
        raise UnauthorizedError()

    try:
        user.password_hash = hash_password(payload.password)
        user.updated_at = datetime.utcnow()
        session.add(user)
        session.delete(token)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        raise

    return Response(status_code=status.HTTP_204_NO_CONTENT)
