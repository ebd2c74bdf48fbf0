"""
Read-side mapping of forum entities to response dicts.
"""

from datetime import datetime
from typing import Any

from tropicario.models import Comment, Section, Thread, Topic, User


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def author_ref(user: User | None) -> dict[str, Any] | None:
    if user is None:
        return None
    return {"id": user.id, "username": user.username, "avatar": user.avatar}


def _parent_ref(parent: Section | Thread | Topic | None) -> dict[str, Any] | None:
    if parent is None:
        return None
    return {"id": parent.id, "title": parent.title, "slug": parent.slug}


def section_to_dict(section: Section) -> dict[str, Any]:
    return {
        "id": section.id,
        "title": section.title,
        "slug": section.slug,
        "description": section.description,
        "order": section.order,
        "isActive": section.is_active,
        "threadsCount": section.threads_count,
        "author": author_ref(section.author),
        "createdAt": _iso(section.created_at),
        "updatedAt": _iso(section.updated_at),
    }


def thread_to_dict(thread: Thread) -> dict[str, Any]:
    return {
        "id": thread.id,
        "title": thread.title,
        "slug": thread.slug,
        "description": thread.description,
        "order": thread.order,
        "isActive": thread.is_active,
        "topicsCount": thread.topics_count,
        "lastActivityAt": _iso(thread.last_activity_at),
        "section": _parent_ref(thread.section),
        "author": author_ref(thread.author),
        "createdAt": _iso(thread.created_at),
        "updatedAt": _iso(thread.updated_at),
    }


def topic_to_dict(topic: Topic) -> dict[str, Any]:
    return {
        "id": topic.id,
        "title": topic.title,
        "slug": topic.slug,
        "content": topic.content,
        "isActive": topic.is_active,
        "isPinned": topic.is_pinned,
        "isLocked": topic.is_locked,
        "commentsCount": topic.comments_count,
        "likesCount": topic.likes_count,
        "lastActivityAt": _iso(topic.last_activity_at),
        "thread": _parent_ref(topic.thread),
        "author": author_ref(topic.author),
        "createdAt": _iso(topic.created_at),
        "updatedAt": _iso(topic.updated_at),
    }


def comment_to_dict(comment: Comment) -> dict[str, Any]:
    return {
        "id": comment.id,
        "content": comment.content,
        "topic": _parent_ref(comment.topic),
        "parentComment": comment.parent_comment_id,
        "likesCount": comment.likes_count,
        "isPinned": comment.is_pinned,
        "author": author_ref(comment.author),
        "createdAt": _iso(comment.created_at),
        "updatedAt": _iso(comment.updated_at),
    }
