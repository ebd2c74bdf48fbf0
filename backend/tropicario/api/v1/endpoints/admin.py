"""
Admin API Endpoints.

User moderation, content moderation (move, pin, lock) and dashboard.
Every route requires the admin role.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tropicario.api.deps import (
    envelope,
    get_admin_service,
    get_forum_service,
    paged,
    require_admin,
)
from tropicario.modules.accounts.admin import AdminService
from tropicario.modules.accounts.serializers import private_user
from tropicario.modules.forum.serializers import comment_to_dict, thread_to_dict, topic_to_dict
from tropicario.modules.forum.service import ForumService

router = APIRouter(dependencies=[Depends(require_admin)])


# ==================== Schemas ====================


class MoveThreadRequest(BaseModel):
    newSectionId: int = Field(ge=1)


class MoveTopicRequest(BaseModel):
    newThreadId: int = Field(ge=1)


# ==================== Dashboard ====================


@router.get("/dashboard")
async def dashboard(
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    result = await admin.dashboard()
    return envelope(
        "Dashboard statistics retrieved successfully",
        {
            "stats": result["stats"],
            "recentUsers": [private_user(u) for u in result["recentUsers"]],
            "recentTopics": [topic_to_dict(t) for t in result["recentTopics"]],
        },
    )


# ==================== Users ====================


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal[
        "createdAt",
        "lastActive",
        "postsCount",
        "username",
        "email",
        "fullName",
        "isVerified",
    ] = Query("createdAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    status: Literal["active", "banned", "disabled", "all"] = Query("all"),
    role: Literal["user", "admin"] | None = Query(None),
    search: str | None = Query(None, max_length=100),
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    result = await admin.list_users(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        status=status,
        role=role,
        search=search.strip() if search else None,
    )
    return paged("Users retrieved successfully", result, private_user)


@router.get("/users/{user_id}")
async def get_user(
    user_id: int,
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    user = await admin.get_user(user_id)
    return envelope("User retrieved successfully", private_user(user))


@router.patch("/users/{user_id}/ban")
async def ban_user(
    user_id: int,
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    user = await admin.ban_user(user_id)
    return envelope(f"User {user.username} has been banned", private_user(user))


@router.patch("/users/{user_id}/unban")
async def unban_user(
    user_id: int,
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    user = await admin.unban_user(user_id)
    return envelope(f"User {user.username} has been unbanned", private_user(user))


@router.delete("/users/{user_id}")
async def delete_user(
    user_id: int,
    admin: AdminService = Depends(get_admin_service),
) -> dict[str, Any]:
    await admin.delete_user(user_id)
    return envelope("User deleted successfully")


# ==================== Content moderation ====================


@router.patch("/threads/{thread_id}/move")
async def move_thread(
    thread_id: int,
    body: MoveThreadRequest,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    thread = await forum.move_thread(thread_id, body.newSectionId)
    return envelope("Thread moved successfully", thread_to_dict(thread))


@router.patch("/topics/{topic_id}/move")
async def move_topic(
    topic_id: int,
    body: MoveTopicRequest,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    topic = await forum.move_topic(topic_id, body.newThreadId)
    return envelope("Topic moved successfully", topic_to_dict(topic))


@router.patch("/topics/{topic_id}/{action}")
async def set_topic_flag(
    topic_id: int,
    action: Literal["pin", "unpin", "lock", "unlock"],
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    """Pin, unpin, lock or unlock a topic."""
    topic, message = await forum.set_topic_flag(topic_id, action)
    return envelope(message, topic_to_dict(topic))


@router.patch("/comments/{comment_id}/pin")
async def pin_comment(
    comment_id: int,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.set_comment_pin(comment_id, True)
    return envelope("Comment pinned successfully", comment_to_dict(comment))


@router.patch("/comments/{comment_id}/unpin")
async def unpin_comment(
    comment_id: int,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.set_comment_pin(comment_id, False)
    return envelope("Comment unpinned successfully", comment_to_dict(comment))
