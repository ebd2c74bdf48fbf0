"""
Authorization predicates.

Each ``ensure_*`` helper raises the matching application error; the plain
predicates are kept separate so services can branch on them.
"""

from tropicario.core.errors import BadRequestError, ForbiddenError, UnauthorizedError
from tropicario.models import User, UserStatus


def is_owner_or_admin(user: User, author_id: int) -> bool:
    return user.is_admin or user.id == author_id


def ensure_admin(user: User) -> None:
    if not user.is_admin:
        raise UnauthorizedError("Unauthorized")


def ensure_owner_or_admin(user: User, author_id: int, entity: str) -> None:
    if not is_owner_or_admin(user, author_id):
        raise UnauthorizedError(f"You are not allowed to modify this {entity}")


def ensure_account_usable(user: User) -> None:
    """Reject banned and disabled accounts."""
    if user.status == UserStatus.BANNED:
        raise ForbiddenError("Your account has been banned")
    if user.status == UserStatus.DISABLED:
        raise ForbiddenError("Your account has been disabled")


def ensure_not_admin_target(target: User, action: str) -> None:
    """Admins can never be banned or deleted through moderation endpoints."""
    if target.is_admin:
        raise BadRequestError(f"You can not {action} another admin - {target.username}")
