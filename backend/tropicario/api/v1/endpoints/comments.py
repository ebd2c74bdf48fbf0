"""
Comments API Endpoints.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tropicario.api.deps import envelope, get_current_user, get_forum_service, paged
from tropicario.models import User
from tropicario.modules.forum.serializers import comment_to_dict
from tropicario.modules.forum.service import ForumService

router = APIRouter()


# ==================== Schemas ====================


class CommentRequest(BaseModel):
    """Create or edit a comment."""

    content: str = Field(min_length=1, max_length=1750)


# ==================== Endpoints ====================


@router.get("/{topic_slug}")
async def list_comments(
    topic_slug: str,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["createdAt", "updatedAt", "likesCount"] = Query(
        "createdAt", alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    result = await forum.list_comments(
        topic_slug, page=page, limit=limit, sort_by=sort_by, sort_order=sort_order
    )
    return paged("Comments retrieved successfully", result, comment_to_dict)


@router.post("/{topic_slug}", status_code=201)
async def create_comment(
    topic_slug: str,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.create_comment(user, topic_slug, body.content.strip())
    return envelope("Comment created successfully", comment_to_dict(comment))


@router.patch("/{comment_id}")
async def update_comment(
    comment_id: int,
    body: CommentRequest,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.update_comment(user, comment_id, body.content.strip())
    return envelope("Comment updated successfully", comment_to_dict(comment))


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    await forum.delete_comment(user, comment_id)
    return envelope("Comment deleted successfully")


@router.patch("/{comment_id}/like")
async def like_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.like_comment(user, comment_id)
    return envelope("Comment liked successfully", {"likesCount": comment.likes_count})


@router.patch("/{comment_id}/dislike")
async def dislike_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    comment = await forum.dislike_comment(user, comment_id)
    return envelope("Comment disliked successfully", {"likesCount": comment.likes_count})
