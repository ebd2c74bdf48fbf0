"""
Forum Service - sections, threads, topics and comments.

Every parent keeps denormalized counters of its children; all methods that
create, delete or move a child update them in the same session, so they
commit or roll back together with the child.
"""

from typing import Any

from loguru import logger
from sqlalchemy import delete, insert, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tropicario.core.database import utcnow
from tropicario.core.errors import BadRequestError, ForbiddenError, NotFoundError
from tropicario.core.pagination import Page, order_clauses, paginate
from tropicario.core.permissions import ensure_owner_or_admin
from tropicario.models import Comment, Section, Thread, Topic, User, comment_likes
from tropicario.modules.forum.slugs import make_slug, make_topic_slug, now_ms

SECTION_SORT_COLUMNS = {
    "order": Section.order,
    "createdAt": Section.created_at,
    "title": Section.title,
    "threadsCount": Section.threads_count,
}

THREAD_SORT_COLUMNS = {
    "order": Thread.order,
    "createdAt": Thread.created_at,
    "title": Thread.title,
    "topicsCount": Thread.topics_count,
    "lastActivityAt": Thread.last_activity_at,
}

TOPIC_SORT_COLUMNS = {
    "title": Topic.title,
    "commentsCount": Topic.comments_count,
    "likesCount": Topic.likes_count,
    "isLocked": Topic.is_locked,
    "lastActivityAt": Topic.last_activity_at,
    "createdAt": Topic.created_at,
    "updatedAt": Topic.updated_at,
}

COMMENT_SORT_COLUMNS = {
    "createdAt": Comment.created_at,
    "updatedAt": Comment.updated_at,
    "likesCount": Comment.likes_count,
}

SECTION_FIELDS = ("title", "description", "order", "is_active")
THREAD_FIELDS = ("title", "description", "order", "is_active")
TOPIC_FIELDS = ("title", "content")

_TOPIC_FLAGS = {
    "pin": ("is_pinned", True, "Topic is already pinned", "Topic pinned"),
    "unpin": ("is_pinned", False, "Topic is not pinned", "Topic unpinned"),
    "lock": ("is_locked", True, "Topic is already locked", "Topic locked"),
    "unlock": ("is_locked", False, "Topic is not locked", "Topic unlocked"),
}


class ForumService:
    """
    Service for managing the section -> thread -> topic -> comment hierarchy.

    Usage:
        forum = ForumService(db_session)
        page = await forum.list_topics(thread_slug="reef-tanks")
    """

    def __init__(self, db: AsyncSession) -> None:
        """Initialize forum service with database session."""
        self.db = db

    async def _shift(self, model: Any, obj_id: int, counter: str, amount: int, **values: Any) -> None:
        """
        Atomically add ``amount`` to a counter column, setting extra values alongside.

        Counters are caches, so updated_at keeps its value.
        """
        column = getattr(model, counter)
        await self.db.execute(
            update(model)
            .where(model.id == obj_id)
            .values({counter: column + amount, "updated_at": model.updated_at, **values})
        )

    # ==================== Sections ====================

    async def list_sections(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "order",
        sort_order: str = "asc",
        is_active: bool | None = None,
    ) -> Page[Section]:
        query = select(Section)
        if is_active is not None:
            query = query.where(Section.is_active == is_active)

        query = query.order_by(
            *order_clauses(SECTION_SORT_COLUMNS, sort_by, sort_order, Section.id)
        )
        return await paginate(self.db, query, page, limit)

    async def get_section(self, section_id: int) -> Section:
        section = await self.db.get(Section, section_id)
        if not section:
            raise NotFoundError("Section not found")
        return section

    async def get_section_by_slug(self, slug: str) -> Section:
        result = await self.db.execute(select(Section).where(Section.slug == slug))
        section = result.scalar_one_or_none()
        if not section:
            raise NotFoundError("Section not found")
        return section

    async def create_section(
        self,
        author: User,
        title: str,
        description: str = "",
        order: int = 0,
        is_active: bool = True,
    ) -> Section:
        """Create a section; title and slug uniqueness is enforced by the database."""
        section = Section(
            author=author,
            title=title,
            slug=make_slug(title),
            description=description,
            order=order,
            is_active=is_active,
        )
        self.db.add(section)
        await self.db.flush()

        logger.info(f"Section created: {section.slug} by {author.username}")
        return section

    async def update_section(self, section_id: int, changes: dict[str, Any]) -> Section:
        section = await self.get_section(section_id)

        for field, value in changes.items():
            if field in SECTION_FIELDS and value is not None:
                setattr(section, field, value)
        if changes.get("title"):
            section.slug = make_slug(section.title)

        await self.db.flush()
        return section

    async def delete_section(self, section_id: int) -> None:
        """Hard delete a section together with its threads, topics and comments."""
        section = await self.get_section(section_id)

        thread_ids = select(Thread.id).where(Thread.section_id == section.id)
        topic_ids = select(Topic.id).where(Topic.thread_id.in_(thread_ids))
        await self._purge_topics(topic_ids)
        await self.db.execute(
            delete(Thread)
            .where(Thread.section_id == section.id)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(delete(Section).where(Section.id == section.id))

        logger.info(f"Section deleted: {section.slug}")

    # ==================== Threads ====================

    async def list_threads(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "order",
        sort_order: str = "asc",
        section_slug: str | None = None,
        is_active: bool | None = None,
    ) -> Page[Thread]:
        """
        Get threads with pagination.

        Args:
            section_slug: Only threads of this section (404 if it does not exist)
            is_active: Filter by active flag; None for all

        Returns:
            One page of threads
        """
        query = select(Thread)
        if section_slug:
            section = await self.get_section_by_slug(section_slug)
            query = query.where(Thread.section_id == section.id)
        if is_active is not None:
            query = query.where(Thread.is_active == is_active)

        query = query.order_by(
            *order_clauses(THREAD_SORT_COLUMNS, sort_by, sort_order, Thread.id)
        )
        return await paginate(self.db, query, page, limit)

    async def get_thread(self, thread_id: int) -> Thread:
        thread = await self.db.get(Thread, thread_id)
        if not thread:
            raise NotFoundError("Thread not found")
        return thread

    async def get_thread_by_slug(self, slug: str) -> Thread:
        result = await self.db.execute(select(Thread).where(Thread.slug == slug))
        thread = result.scalar_one_or_none()
        if not thread:
            raise NotFoundError("Thread not found")
        return thread

    async def create_thread(
        self,
        author: User,
        section_slug: str,
        title: str,
        description: str = "",
        order: int = 0,
        is_active: bool = True,
    ) -> Thread:
        """
        Create a thread inside a section.

        Args:
            author: Admin creating the thread
            section_slug: Parent section
            title: Unique thread title

        Returns:
            Created thread
        """
        existing = await self.db.execute(select(Thread.id).where(Thread.title == title))
        if existing.scalar_one_or_none() is not None:
            raise BadRequestError("Thread with the same title already exists")

        section = await self.get_section_by_slug(section_slug)

        thread = Thread(
            section=section,
            author=author,
            title=title,
            slug=make_slug(title),
            description=description,
            order=order,
            is_active=is_active,
            last_activity_at=utcnow(),
        )
        self.db.add(thread)
        await self.db.flush()

        await self._shift(Section, section.id, "threads_count", 1)

        logger.info(f"Thread created: {thread.slug} in {section.slug}")
        return thread

    async def update_thread(self, thread_id: int, changes: dict[str, Any]) -> Thread:
        thread = await self.get_thread(thread_id)

        for field, value in changes.items():
            if field in THREAD_FIELDS and value is not None:
                setattr(thread, field, value)
        if changes.get("title"):
            thread.slug = make_slug(thread.title)

        await self.db.flush()
        return thread

    async def delete_thread(self, thread_id: int) -> None:
        """Hard delete a thread together with its topics and comments."""
        thread = await self.get_thread(thread_id)

        await self._purge_topics(select(Topic.id).where(Topic.thread_id == thread.id))
        await self.db.execute(delete(Thread).where(Thread.id == thread.id))
        await self._shift(Section, thread.section_id, "threads_count", -1)

        logger.info(f"Thread deleted: {thread.slug}")

    async def move_thread(self, thread_id: int, new_section_id: int) -> Thread:
        """Move a thread to another section, keeping both counters in step."""
        thread = await self.get_thread(thread_id)
        if not thread.is_active:
            raise NotFoundError("Thread not found or inactive")
        if not thread.section or not thread.section.is_active:
            raise NotFoundError("Source section not found or inactive")

        target = await self.db.get(Section, new_section_id)
        if not target or not target.is_active:
            raise NotFoundError("Target section not found or inactive")
        if thread.section_id == target.id:
            raise BadRequestError("Thread is already in this section")

        old_section_id = thread.section_id
        thread.section = target
        await self.db.flush()

        await self._shift(Section, old_section_id, "threads_count", -1)
        await self._shift(Section, target.id, "threads_count", 1)

        logger.info(f"Thread {thread.slug} moved: section {old_section_id} -> {target.id}")
        return thread

    # ==================== Topics ====================

    async def list_topics(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "lastActivityAt",
        sort_order: str = "desc",
        thread_slug: str | None = None,
        is_active: bool | None = True,
        search: str | None = None,
    ) -> Page[Topic]:
        """
        Get topics with pagination, pinned topics first.

        Args:
            thread_slug: Only topics of this thread (404 if it does not exist)
            is_active: Filter by active flag; None for all
            search: Case-insensitive match on title or content

        Returns:
            One page of topics
        """
        query = select(Topic)
        if thread_slug:
            thread = await self.get_thread_by_slug(thread_slug)
            query = query.where(Topic.thread_id == thread.id)
        if is_active is not None:
            query = query.where(Topic.is_active == is_active)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(Topic.title.ilike(pattern), Topic.content.ilike(pattern)))

        query = query.order_by(
            *order_clauses(
                TOPIC_SORT_COLUMNS, sort_by, sort_order, Topic.id, pinned=Topic.is_pinned
            )
        )
        return await paginate(self.db, query, page, limit)

    async def get_topic(self, topic_id: int) -> Topic:
        topic = await self.db.get(Topic, topic_id)
        if not topic:
            raise NotFoundError("Topic not found")
        return topic

    async def get_topic_by_slug(self, slug: str, active_only: bool = True) -> Topic:
        query = select(Topic).where(Topic.slug == slug)
        if active_only:
            query = query.where(Topic.is_active == True)
        result = await self.db.execute(query)
        topic = result.scalar_one_or_none()
        if not topic:
            raise NotFoundError("Topic not found")
        return topic

    async def create_topic(
        self,
        author: User,
        thread_slug: str,
        title: str,
        content: str,
    ) -> Topic:
        """
        Create new topic.

        The parent thread's topicsCount and lastActivityAt and the author's
        postsCount are updated with it.

        Args:
            author: Creating user
            thread_slug: Parent thread, must be active
            title: Topic title
            content: Topic body

        Returns:
            Created topic
        """
        result = await self.db.execute(
            select(Thread).where(Thread.slug == thread_slug, Thread.is_active == True)
        )
        thread = result.scalar_one_or_none()
        if not thread:
            raise NotFoundError("Thread not found or inactive")

        now = utcnow()
        topic = Topic(
            thread=thread,
            author=author,
            title=title,
            slug=await self._unique_topic_slug(title),
            content=content,
            last_activity_at=now,
        )
        self.db.add(topic)
        await self.db.flush()

        await self._shift(Thread, thread.id, "topics_count", 1, last_activity_at=now)
        await self._shift(User, author.id, "posts_count", 1)

        logger.info(f"Topic created: {topic.slug} by {author.username}")
        return topic

    async def _unique_topic_slug(self, title: str) -> str:
        """Timestamped slug, moved one millisecond forward while it is taken."""
        stamp = now_ms()
        while True:
            slug = make_topic_slug(title, stamp)
            taken = await self.db.execute(select(Topic.id).where(Topic.slug == slug))
            if taken.scalar_one_or_none() is None:
                return slug
            stamp += 1

    async def update_topic(self, user: User, slug: str, changes: dict[str, Any]) -> Topic:
        """Edit title or content; the slug stays as generated at creation."""
        topic = await self.get_topic_by_slug(slug, active_only=False)
        ensure_owner_or_admin(user, topic.author_id, "topic")

        for field, value in changes.items():
            if field in TOPIC_FIELDS and value is not None:
                setattr(topic, field, value)

        await self.db.flush()
        return topic

    async def delete_topic(self, user: User, slug: str) -> None:
        """Hard delete a topic and its comments, decrementing the thread's counter."""
        topic = await self.get_topic_by_slug(slug)
        ensure_owner_or_admin(user, topic.author_id, "topic")

        thread_id = topic.thread_id
        await self._purge_topics(select(Topic.id).where(Topic.id == topic.id))
        await self._shift(Thread, thread_id, "topics_count", -1)

        logger.info(f"Topic deleted: {slug} by {user.username}")

    async def _purge_topics(self, topic_ids: Any) -> None:
        """Remove the selected topics with their comments and likes."""
        comment_ids = select(Comment.id).where(Comment.topic_id.in_(topic_ids))
        await self.db.execute(
            delete(comment_likes).where(comment_likes.c.comment_id.in_(comment_ids))
        )
        await self.db.execute(
            delete(Comment)
            .where(Comment.topic_id.in_(topic_ids))
            .execution_options(synchronize_session="fetch")
        )
        await self.db.execute(
            delete(Topic)
            .where(Topic.id.in_(topic_ids))
            .execution_options(synchronize_session="fetch")
        )

    async def move_topic(self, topic_id: int, new_thread_id: int) -> Topic:
        """Move a topic to another thread, keeping both counters in step."""
        topic = await self.get_topic(topic_id)
        if not topic.is_active:
            raise NotFoundError("Topic not found or inactive")
        if not topic.thread or not topic.thread.is_active:
            raise NotFoundError("Source thread not found or inactive")

        target = await self.db.get(Thread, new_thread_id)
        if not target or not target.is_active:
            raise NotFoundError("Target thread not found or inactive")
        if topic.thread_id == target.id:
            raise BadRequestError("Topic is already in this thread")

        old_thread_id = topic.thread_id
        topic.thread = target
        await self.db.flush()

        await self._shift(Thread, old_thread_id, "topics_count", -1)
        await self._shift(Thread, target.id, "topics_count", 1, last_activity_at=utcnow())

        logger.info(f"Topic {topic.slug} moved: thread {old_thread_id} -> {target.id}")
        return topic

    async def set_topic_flag(self, topic_id: int, action: str) -> tuple[Topic, str]:
        """
        Pin, unpin, lock or unlock a topic.

        Returns:
            (topic, success message)

        Raises:
            NotFoundError: the topic is missing or inactive
            BadRequestError: the topic is already in the requested state
        """
        field, value, conflict, done = _TOPIC_FLAGS[action]
        topic = await self.get_topic(topic_id)
        if not topic.is_active:
            raise NotFoundError("Topic not found or inactive")

        if getattr(topic, field) == value:
            raise BadRequestError(conflict)

        setattr(topic, field, value)
        await self.db.flush()

        logger.info(f"{done}: {topic.slug}")
        return topic, f"{done} successfully"

    # ==================== Comments ====================

    async def list_comments(
        self,
        topic_slug: str,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "asc",
    ) -> Page[Comment]:
        """Top-level, non-deleted comments of an active topic, pinned first."""
        topic = await self.get_topic_by_slug(topic_slug)

        query = (
            select(Comment)
            .where(
                Comment.topic_id == topic.id,
                Comment.is_deleted == False,
                Comment.parent_comment_id.is_(None),
            )
            .order_by(
                *order_clauses(
                    COMMENT_SORT_COLUMNS,
                    sort_by,
                    sort_order,
                    Comment.id,
                    pinned=Comment.is_pinned,
                )
            )
        )
        return await paginate(self.db, query, page, limit)

    async def get_comment(self, comment_id: int) -> Comment:
        comment = await self.db.get(Comment, comment_id)
        if not comment or comment.is_deleted:
            raise NotFoundError("Comment not found")
        return comment

    async def create_comment(self, author: User, topic_slug: str, content: str) -> Comment:
        """
        Add a comment to an active, unlocked topic.

        Args:
            author: Commenting user
            topic_slug: Target topic
            content: Comment body

        Returns:
            Created comment
        """
        topic = await self.get_topic_by_slug(topic_slug)
        if topic.is_locked:
            raise ForbiddenError("This topic is locked. You can't add comments.")

        comment = Comment(topic=topic, author=author, content=content)
        self.db.add(comment)
        await self.db.flush()

        await self._shift(Topic, topic.id, "comments_count", 1, last_activity_at=utcnow())
        return comment

    async def update_comment(self, user: User, comment_id: int, content: str) -> Comment:
        comment = await self.get_comment(comment_id)
        ensure_owner_or_admin(user, comment.author_id, "comment")

        comment.content = content
        await self.db.flush()
        return comment

    async def delete_comment(self, user: User, comment_id: int) -> None:
        """Soft delete: the comment is flagged and leaves the topic's count."""
        comment = await self.get_comment(comment_id)
        ensure_owner_or_admin(user, comment.author_id, "comment")

        comment.is_deleted = True
        await self.db.flush()
        await self._shift(Topic, comment.topic_id, "comments_count", -1)

        logger.info(f"Comment {comment.id} deleted by {user.username}")

    async def set_comment_pin(self, comment_id: int, pinned: bool) -> Comment:
        comment = await self.get_comment(comment_id)
        if comment.is_pinned == pinned:
            raise BadRequestError(
                "Comment is already pinned" if pinned else "Comment is not pinned"
            )

        comment.is_pinned = pinned
        await self.db.flush()
        logger.info(f"Comment {comment.id} {'pinned' if pinned else 'unpinned'}")
        return comment

    # ==================== Likes ====================

    async def _has_liked(self, comment_id: int, user_id: int) -> bool:
        result = await self.db.execute(
            select(comment_likes.c.comment_id).where(
                comment_likes.c.comment_id == comment_id,
                comment_likes.c.user_id == user_id,
            )
        )
        return result.first() is not None

    async def like_comment(self, user: User, comment_id: int) -> Comment:
        """
        Record a like from the user.

        Raises:
            BadRequestError: the user already liked this comment
        """
        comment = await self.get_comment(comment_id)
        if await self._has_liked(comment.id, user.id):
            raise BadRequestError("Comment already liked")

        await self.db.execute(
            insert(comment_likes).values(comment_id=comment.id, user_id=user.id, created_at=utcnow())
        )
        await self._shift(Comment, comment.id, "likes_count", 1)
        await self.db.refresh(comment, attribute_names=["likes_count"])
        return comment

    async def dislike_comment(self, user: User, comment_id: int) -> Comment:
        """
        Withdraw the user's like.

        Raises:
            BadRequestError: the user has not liked this comment
        """
        comment = await self.get_comment(comment_id)
        if not await self._has_liked(comment.id, user.id):
            raise BadRequestError("Comment isn't liked")

        await self.db.execute(
            delete(comment_likes).where(
                comment_likes.c.comment_id == comment.id,
                comment_likes.c.user_id == user.id,
            )
        )
        await self._shift(Comment, comment.id, "likes_count", -1)
        await self.db.refresh(comment, attribute_names=["likes_count"])
        return comment
