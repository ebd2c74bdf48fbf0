"""
Auth API Endpoints.

Registration, login/logout, email verification and password management.
"""

import json
from typing import Any

from fastapi import APIRouter, Depends, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, EmailStr, ValidationError, ValidationInfo, field_validator

from tropicario.api.deps import (
    clear_session_cookie,
    envelope,
    get_account_service,
    get_app_settings,
    get_current_user,
    set_session_cookie,
)
from tropicario.core.config import Settings
from tropicario.core.errors import AppError, BadRequestError
from tropicario.models import User
from tropicario.modules.accounts import pages
from tropicario.modules.accounts.serializers import auth_user, private_user
from tropicario.modules.accounts.service import AccountService
from tropicario.modules.accounts.validators import (
    check_password,
    check_username,
    normalize_email,
)

router = APIRouter()


# ==================== Schemas ====================


class RegisterRequest(BaseModel):
    """Create an account."""

    username: str
    email: EmailStr
    password: str

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str) -> str:
        return check_username(v)

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return check_password(v)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class EmailRequest(BaseModel):
    """Body of resend-verification and forgot-password."""

    email: EmailStr

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        return normalize_email(v)


class ResetPasswordRequest(BaseModel):
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v: str) -> str:
        return check_password(v)


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str

    @field_validator("newPassword")
    @classmethod
    def validate_new_password(cls, v: str, info: ValidationInfo) -> str:
        if v == info.data.get("currentPassword"):
            raise ValueError("New password must be different from current password")
        return check_password(v)


def _login_url(settings: Settings) -> str:
    return f"{settings.frontend_url.rstrip('/')}/login"


# ==================== Registration & sessions ====================


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """Create an account and send the verification email."""
    user, token = await accounts.register(body.username, body.email, body.password)
    set_session_cookie(response, token, settings)
    return envelope(
        "User registered successfully. Please check your email to verify your account.",
        auth_user(user),
        token=token,
    )


@router.post("/login")
async def login(
    body: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    user, token = await accounts.login(body.email, body.password)
    set_session_cookie(response, token, settings)
    return envelope("Login successful", auth_user(user), token=token)


@router.post("/logout")
async def logout(
    response: Response,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    clear_session_cookie(response, settings)
    return envelope("Logged out successfully")


@router.get("/me")
async def me(
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """Current account; also refreshes lastActive."""
    await accounts.touch(user)
    return envelope("User retrieved successfully", private_user(user))


# ==================== Email verification ====================


@router.get("/verify-email/{token}", response_class=HTMLResponse)
async def verify_email(
    token: str,
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> HTMLResponse:
    """Browser target of the verification link."""
    user = await accounts.verify_email(token)
    if not user:
        return HTMLResponse(pages.verification_failed_page(), status_code=400)
    return HTMLResponse(pages.verification_success_page(_login_url(settings)))


@router.post("/resend-verification")
async def resend_verification(
    body: EmailRequest,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    await accounts.resend_verification(body.email)
    return envelope("Verification email sent successfully. Please check your inbox.")


# ==================== Password reset ====================


@router.post("/forgot-password")
async def forgot_password(
    body: EmailRequest,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    sent = await accounts.request_password_reset(body.email)
    if not sent:
        return envelope(
            "If that email exists, we sent a password reset link. Please check your inbox."
        )
    return envelope("Reset link sent. Check your email.")


@router.get("/reset-password/{token}", response_class=HTMLResponse)
async def reset_password_form(
    token: str,
    request: Request,
    accounts: AccountService = Depends(get_account_service),
) -> HTMLResponse:
    """Browser target of the reset link: a form posting back to the same URL."""
    user = await accounts.find_by_reset_token(token)
    if not user:
        return HTMLResponse(pages.reset_password_failed_page(), status_code=400)
    return HTMLResponse(pages.reset_password_form_page(str(request.url.path)))


@router.post("/reset-password/{token}", response_model=None)
async def reset_password(
    token: str,
    request: Request,
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any] | HTMLResponse:
    """Set a new password. Accepts JSON from API clients and the HTML form post."""
    content_type = request.headers.get("content-type", "")
    from_form = content_type.startswith(
        ("application/x-www-form-urlencoded", "multipart/form-data")
    )

    if from_form:
        payload = dict(await request.form())
    else:
        try:
            payload = await request.json()
        except json.JSONDecodeError:
            raise BadRequestError("Request body must be valid JSON")

    try:
        body = ResetPasswordRequest.model_validate(payload)
    except ValidationError as e:
        if from_form:
            message = str(e.errors()[0].get("ctx", {}).get("error", "Invalid password"))
            return HTMLResponse(
                pages.reset_password_form_page(str(request.url.path), message),
                status_code=400,
            )
        raise RequestValidationError(e.errors())

    if not from_form:
        await accounts.reset_password(token, body.newPassword)
        return envelope(
            "Password reset successful. You can now login with your new password."
        )

    try:
        await accounts.reset_password(token, body.newPassword)
    except AppError:
        return HTMLResponse(pages.reset_password_failed_page(), status_code=400)
    return HTMLResponse(pages.reset_password_success_page(_login_url(settings)))


@router.patch("/change-password")
async def change_password(
    body: ChangePasswordRequest,
    response: Response,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """Change the password; the session cookie is cleared so the user logs in again."""
    await accounts.change_password(user, body.currentPassword, body.newPassword)
    clear_session_cookie(response, settings)
    return envelope("Password changed successfully. Please login again.")
