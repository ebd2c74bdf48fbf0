"""
Users API Endpoints.

Public profiles and self-service account management.
"""

from typing import Any

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, EmailStr, Field, field_validator

from tropicario.api.deps import (
    clear_session_cookie,
    envelope,
    get_account_service,
    get_app_settings,
    get_current_user,
)
from tropicario.core.config import Settings
from tropicario.models import User
from tropicario.modules.accounts.serializers import private_user, public_user
from tropicario.modules.accounts.service import AccountService
from tropicario.modules.accounts.validators import check_username, normalize_email

router = APIRouter()


# ==================== Schemas ====================


class UpdateProfileRequest(BaseModel):
    """Partial profile update; omitted fields stay unchanged."""

    username: str | None = None
    email: EmailStr | None = None
    fullName: str | None = Field(None, max_length=75)
    age: int | None = Field(None, ge=13, le=120)
    location: str | None = Field(None, max_length=125)
    bio: str | None = Field(None, max_length=500)

    @field_validator("username")
    @classmethod
    def validate_username(cls, v: str | None) -> str | None:
        return check_username(v) if v is not None else v

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str | None) -> str | None:
        return normalize_email(v) if v is not None else v


class DisableAccountRequest(BaseModel):
    password: str = Field(min_length=1)


# ==================== Own account ====================


@router.patch("/profile")
async def update_profile(
    body: UpdateProfileRequest,
    user: User = Depends(get_current_user),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    changes = body.model_dump(exclude_unset=True)
    if "fullName" in changes:
        changes["full_name"] = changes.pop("fullName")
    updated = await accounts.update_profile(user, changes)
    return envelope("Profile updated successfully", private_user(updated))


@router.patch("/profile/disable")
async def disable_account(
    body: DisableAccountRequest,
    response: Response,
    user: User = Depends(get_current_user),
    settings: Settings = Depends(get_app_settings),
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    """Anonymize the caller's account and end the session."""
    await accounts.disable_account(user, body.password)
    clear_session_cookie(response, settings)
    return envelope("Account disabled successfully")


# ==================== Public profiles ====================


@router.get("/{username}")
async def get_profile(
    username: str,
    accounts: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    user, comments_count = await accounts.get_public_profile(username)
    return envelope("User profile retrieved successfully", public_user(user, comments_count))
