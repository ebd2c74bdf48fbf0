"""
Sections API Endpoints.
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
from tropicario.modules.forum.serializers import section_to_dict
from tropicario.modules.forum.service import ForumService

router = APIRouter()


# ==================== Schemas ====================


class CreateSectionRequest(BaseModel):
    title: str = Field(min_length=2, max_length=55)
    description: str = Field("", max_length=255)
    order: int = Field(0, ge=0)
    isActive: bool = True


class UpdateSectionRequest(BaseModel):
    title: str | None = Field(None, min_length=2, max_length=55)
    description: str | None = Field(None, max_length=255)
    order: int | None = Field(None, ge=0)
    isActive: bool | None = None


# ==================== Endpoints ====================


@router.get("")
async def list_sections(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["order", "createdAt", "title", "threadsCount"] = Query(
        "order", alias="sortBy"
    ),
    sort_order: Literal["asc", "desc"] = Query("asc", alias="sortOrder"),
    is_active: Literal["true", "false", "all"] | None = Query(None, alias="isActive"),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    result = await forum.list_sections(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_order=sort_order,
        is_active=parse_active_filter(is_active),
    )
    return paged("Sections retrieved successfully", result, section_to_dict)


@router.get("/{slug}")
async def get_section(
    slug: str,
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    section = await forum.get_section_by_slug(slug)
    return envelope("Section retrieved successfully", section_to_dict(section))


@router.post("", status_code=201)
async def create_section(
    body: CreateSectionRequest,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    section = await forum.create_section(
        admin,
        title=body.title.strip(),
        description=body.description.strip(),
        order=body.order,
        is_active=body.isActive,
    )
    return envelope("Section created successfully", section_to_dict(section))


@router.patch("/{section_id}")
async def update_section(
    section_id: int,
    body: UpdateSectionRequest,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    section = await forum.update_section(
        section_id,
        {
            "title": body.title.strip() if body.title else None,
            "description": body.description,
            "order": body.order,
            "is_active": body.isActive,
        },
    )
    return envelope("Section updated successfully", section_to_dict(section))


@router.delete("/{section_id}")
async def delete_section(
    section_id: int,
    admin: User = Depends(require_admin),
    forum: ForumService = Depends(get_forum_service),
) -> dict[str, Any]:
    await forum.delete_section(section_id)
    return envelope("Section deleted successfully")
