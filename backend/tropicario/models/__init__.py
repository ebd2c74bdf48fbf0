from tropicario.models.forum import Comment, Section, Thread, Topic, comment_likes
from tropicario.models.user import User, UserRole, UserStatus

__all__ = [
    "Comment",
    "Section",
    "Thread",
    "Topic",
    "User",
    "UserRole",
    "UserStatus",
    "comment_likes",
]
