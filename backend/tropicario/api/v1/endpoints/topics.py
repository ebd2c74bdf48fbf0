"""
Topics API Endpoints.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tropicario.api.deps import (
    envelope,
    get_current_user,
    get_forum_service,
    paged,
    parse_active_filter,
)
from tropicario.models import User
from tropicario.modules.forum.serializers import topic_to_dict
from tropicario.modules.forum.service import ForumService

router = APIRouter()


# ==================== Schemas ====================


class CreateTopicRequest(BaseModel):
    threadSlug: str = Field(min_length=1)
    title: str = Field(min_length=3, max_length=175)
    content: str = Field(min_length=1, max_length=1750)


class UpdateTopicRequest(BaseModel):
    title: str | None = Field(None, min_length=3, max_length=175)
    content: str | None = Field(None, min_length=1, max_length=1750)


# ==================== Endpoints ====================


@router.get("")
async def list_topics(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal[
        "title",
        "commentsCount",
        "likesCount",
        "isLocked",
        "lastActivityAt",
        "createdAt",
        "updatedAt",
    ] = Query("lastActivityAt", alias="sortBy"),
    sort_order: Literal["asc", "desc"] = Query("desc", alias="sortOrder"),
    thread_slug: str | None = Query(None, alias="threadSlug", min_length=1),
    is_active: Literal["true", "false", "all"] | None = Query(None, alias="isActive"),
    search: str | None = Query(None, max_length=100),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    """Topics with pinned ones first; only active topics unless isActive says otherwise."""
    result = await forum.list_topics(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        thread_slug=thread_slug,
        # inactive topics are hidden unless isActive asks for them
        is_active=parse_active_filter(is_active, default=True),
        search=search.strip() if search else None,
    )
    return paged("Topics retrieved successfully", result, topic_to_dict)


@router.get("/{slug}")
async def get_topic(
    slug: str,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    topic = await forum.get_topic_by_slug(slug)
    return envelope("Topic retrieved successfully", topic_to_dict(topic))


@router.post("", status_code=201)
async def create_topic(
    body: CreateTopicRequest,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    topic = await forum.create_topic(
        user,
        thread_slug=body.threadSlug,
        title=body.title.strip(),
        content=body.content.strip(),
    )
    return envelope("Topic created successfully", topic_to_dict(topic))


@router.patch("/{slug}")
async def update_topic(
    slug: str,
    body: UpdateTopicRequest,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    """Author or admin only; the slug does not change with the title."""
    topic = await forum.update_topic(
        user,
        slug,
        {
            "title": body.title.strip() if body.title else None,
            "content": body.content.strip() if body.content else None,
        },
    )
    return envelope("Topic updated successfully", topic_to_dict(topic))


@router.delete("/{slug}")
async def delete_topic(
    slug: str,
    user: User = Depends(get_current_user),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    await forum.delete_topic(user, slug)
    return envelope("Topic deleted successfully")
