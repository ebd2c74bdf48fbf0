"""
Threads API Endpoints.
"""

from typing import Any, Literal

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from tropicario.api.deps import (
    envelope,
    get_forum_service,
    paged,
    parse_active_filter,
    require_admin,
)
from tropicario.models import User
from tropicario.modules.forum.serializers import thread_to_dict
from tropicario.modules.forum.service import ForumService

router = APIRouter()


# ==================== Schemas ====================


class CreateThreadRequest(BaseModel):
    sectionSlug: str = Field(min_length=1)
    title: str = Field(min_length=3, max_length=75)
    description: str = Field("", max_length=255)
    order: int = Field(0, ge=0)
    isActive: bool = True


class UpdateThreadRequest(BaseModel):
    title: str | None = Field(None, min_length=3, max_length=75)
    description: str | None = Field(None, max_length=255)
    order: int | None = Field(None, ge=0)
    isActive: bool | None = None


# ==================== Endpoints ====================


@router.get("")
async def list_threads(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["order", "createdAt", "topicsCount", "title", "lastActivityAt"] = Query(
        "order", alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    section_slug: str | None = Query(None, alias="sectionSlug", min_length=1),
    is_active: Literal["true", "false", "all"] | None = Query(None, alias="isActive"),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    result = await forum.list_threads(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        section_slug=section_slug,
        is_active=parse_active_filter(is_active),
    )
    return paged("Threads retrieved successfully", result, thread_to_dict)


@router.get("/{slug}")
async def get_thread(
    slug: str,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    thread = await forum.get_thread_by_slug(slug)
    return envelope("Thread retrieved successfully", thread_to_dict(thread))


@router.post("", status_code=201)
async def create_thread(
    body: CreateThreadRequest,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    thread = await forum.create_thread(
        admin,
        section_slug=body.sectionSlug,
        title=body.title.strip(),
        description=body.description.strip(),
        order=body.order,
        is_active=body.isActive,
    )
    return envelope("Thread created successfully", thread_to_dict(thread))


@router.patch("/{thread_id}")
async def update_thread(
    thread_id: int,
    body: UpdateThreadRequest,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    thread = await forum.update_thread(
        thread_id,
        {
            "title": body.title.strip() if body.title else None,
            "description": body.description,
            "order": body.order,
            "is_active": body.isActive,
        },
    )
    return envelope("Thread updated successfully", thread_to_dict(thread))


@router.delete("/{thread_id}")
async def delete_thread(
    thread_id: int,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    await forum.delete_thread(thread_id)
    return envelope("Thread deleted successfully")
