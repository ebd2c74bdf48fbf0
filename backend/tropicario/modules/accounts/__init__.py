"""
Accounts Module - Users and their credentials.

Features:
- Registration and session login
- Email verification and password reset with hashed one-time tokens
- Profiles and self-service account disabling
- Admin moderation (ban, unban, delete) and dashboard
"""

from tropicario.modules.accounts.admin import AdminService
from tropicario.modules.accounts.email import EmailService
from tropicario.modules.accounts.service import AccountService

__all__ = ["AccountService", "AdminService", "EmailService"]
