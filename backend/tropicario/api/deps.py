"""
Shared API dependencies: settings, services, session authentication.
"""

from typing import Any

from fastapi import Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from tropicario.core.config import Settings
from tropicario.core.database import get_db
from tropicario.core.errors import UnauthorizedError
from tropicario.core.pagination import Page
from tropicario.core.permissions import ensure_admin
from tropicario.models import User
from tropicario.modules.accounts.admin import AdminService
from tropicario.modules.accounts.email import EmailService
from tropicario.modules.accounts.service import AccountService
from tropicario.modules.forum.service import ForumService


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_email_service(request: Request) -> EmailService:
    return request.app.state.email


def get_account_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    email: EmailService = Depends(get_email_service),
) -> AccountService:
    return AccountService(db, settings, email)


def get_forum_service(db: AsyncSession = Depends(get_db)) -> ForumService:
    return ForumService(db)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


# ==================== Authentication ====================


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> User:
    """Resolve the session cookie to an active account."""
    token = request.cookies.get(settings.session_cookie_name)
    if not token:
        raise UnauthorizedError("Not authenticated. Please login.")

    user = await accounts.authenticate(token)
    request.state.user_id = user.id
    request.state.user_role = user.role.value
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    ensure_admin(user)
    return user


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    response.set_cookie(
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_token_expire_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
    )


# ==================== Responses ====================


def envelope(message: str, data: Any = None, **extra: Any) -> dict[str, Any]:
    """Standard success body."""
    body: dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    body.update(extra)
    return body


def paged(message: str, page: Page, mapper) -> dict[str, Any]:
    """Success body for list endpoints."""
    return {
        "success": True,
        "message": message,
        "data": [mapper(item) for item in page.items],
        "pagination": page.meta(),
    }


def parse_active_filter(value: str | None, default: bool | None = None) -> bool | None:
    """Map the ``isActive`` query value (true, false, all) to a filter."""
    if value is None:
        return default
    if value == "all":
        return None
    return value == "true"
