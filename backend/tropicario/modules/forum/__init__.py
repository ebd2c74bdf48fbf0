"""
Forum Module - Community discussions.

Features:
- Sections, threads and topics
- Comments with likes
- Denormalized counters kept in step with every change
- Moderation tools (move, pin, lock)
"""

from tropicario.modules.forum.service import ForumService

__all__ = ["ForumService"]
