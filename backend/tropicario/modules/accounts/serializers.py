"""
Read-side mapping of accounts to response dicts.

Hashed passwords and hashed one-time tokens never leave this module.
"""

from typing import Any

from tropicario.models import User


def auth_user(user: User) -> dict[str, Any]:
    """Block returned by register and login."""
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "avatar": user.avatar,
        "role": user.role.value,
        "isVerified": user.is_verified,
    }


def public_user(user: User, comments_count: int | None = None) -> dict[str, Any]:
    """Profile visible to anyone."""
    data = {
        "id": user.id,
        "username": user.username,
        "fullName": user.full_name,
        "avatar": user.avatar,
        "age": user.age,
        "location": user.location,
        "bio": user.bio,
        "role": user.role.value,
        "postsCount": user.posts_count,
        "lastActive": user.last_active.isoformat() if user.last_active else None,
        "createdAt": user.created_at.isoformat() if user.created_at else None,
    }
    if comments_count is not None:
        data["commentsCount"] = comments_count
    return data


def private_user(user: User) -> dict[str, Any]:
    """Own account and admin view."""
    return {
        **public_user(user),
        "email": user.email,
        "status": user.status.value,
        "isVerified": user.is_verified,
        "updatedAt": user.updated_at.isoformat() if user.updated_at else None,
    }
