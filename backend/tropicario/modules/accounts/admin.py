"""
User moderation and dashboard statistics.
"""

from typing import Any

from loguru import logger
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tropicario.core.errors import BadRequestError, NotFoundError
from tropicario.core.pagination import Page, order_clauses, paginate
from tropicario.core.permissions import ensure_not_admin_target
from tropicario.models import Comment, Section, Thread, Topic, User, UserRole, UserStatus
from tropicario.modules.accounts.service import anonymize

USER_SORT_COLUMNS = {
    "createdAt": User.created_at,
    "lastActive": User.last_active,
    "postsCount": User.posts_count,
    "username": User.username,
    "email": User.email,
    "fullName": User.full_name,
    "isVerified": User.is_verified,
}


class AdminService:
    """
    Service for admin-only account management.

    Usage:
        admin = AdminService(db_session)
        page = await admin.list_users(status="banned", page=1, limit=10)
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    # ==================== Users ====================

    async def list_users(
        self,
        page: int = 1,
        limit: int = 10,
        sort_by: str = "createdAt",
        sort_order: str = "asc",
        status: str = "all",
        role: str | None = None,
        search: str | None = None,
    ) -> Page[User]:
        """
        List accounts with filters.

        Args:
            status: active, banned, disabled or all
            role: user or admin; None for both
            search: Case-insensitive match on username, email or full name

        Returns:
            One page of users
        """
        query = select(User)

        if status != "all":
            query = query.where(User.status == UserStatus(status))
        if role:
            query = query.where(User.role == UserRole(role))
        if search:
            pattern = f"%{search.lower()}%"
            query = query.where(
                or_(
                    func.lower(User.username).like(pattern),
                    func.lower(User.email).like(pattern),
                    func.lower(User.full_name).like(pattern),
                )
            )

        query = query.order_by(*order_clauses(USER_SORT_COLUMNS, sort_by, sort_order, User.id))
        return await paginate(self.db, query, page, limit)

    async def get_user(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if not user:
            raise NotFoundError("User not found")
        return user

    async def ban_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        ensure_not_admin_target(user, "ban")

        if user.status == UserStatus.BANNED:
            raise BadRequestError("User is already banned")
        if user.status == UserStatus.DISABLED:
            raise BadRequestError("User account is disabled")

        user.status = UserStatus.BANNED
        await self.db.flush()
        logger.info(f"User banned: {user.username} (id={user.id})")
        return user

    async def unban_user(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if user.status != UserStatus.BANNED:
            raise BadRequestError("User is not banned")

        user.status = UserStatus.ACTIVE
        await self.db.flush()
        logger.info(f"User unbanned: {user.username} (id={user.id})")
        return user

    async def delete_user(self, user_id: int) -> User:
        """Soft-delete (anonymize) an account."""
        user = await self.get_user(user_id)
        ensure_not_admin_target(user, "delete")

        if user.status == UserStatus.DISABLED:
            raise BadRequestError("User account is already deleted")

        username = user.username
        anonymize(user)
        await self.db.flush()
        logger.info(f"User deleted by admin: {username} (id={user.id})")
        return user

    # ==================== Dashboard ====================

    async def _count(self, query) -> int:
        return (await self.db.execute(query)).scalar_one()

    async def dashboard(self) -> dict[str, Any]:
        """Site-wide counts plus the most recent users and topics."""
        stats = {
            "totalUsers": await self._count(select(func.count(User.id))),
            "activeUsers": await self._count(
                select(func.count(User.id)).where(User.status == UserStatus.ACTIVE)
            ),
            "bannedUsers": await self._count(
                select(func.count(User.id)).where(User.status == UserStatus.BANNED)
            ),
            "totalSections": await self._count(select(func.count(Section.id))),
            "totalThreads": await self._count(select(func.count(Thread.id))),
            "totalTopics": await self._count(select(func.count(Topic.id))),
            "totalComments": await self._count(
                select(func.count(Comment.id)).where(Comment.is_deleted == False)
            ),
        }

        recent_users = await self.db.execute(
            select(User).order_by(User.created_at.desc(), User.id.desc()).limit(5)
        )
        recent_topics = await self.db.execute(
            select(Topic).order_by(Topic.created_at.desc(), Topic.id.desc()).limit(5)
        )

        return {
            "stats": stats,
            "recentUsers": list(recent_users.scalars().all()),
            "recentTopics": list(recent_topics.scalars().all()),
        }
