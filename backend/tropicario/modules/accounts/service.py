"""
Account Service - registration, sessions, email verification and password reset.
"""

from datetime import timedelta
from typing import Any

from loguru import logger
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tropicario.core.config import Settings
from tropicario.core.database import utcnow
from tropicario.core.errors import (
    BadRequestError,
    ForbiddenError,
    InternalServerError,
    NotFoundError,
    TooManyRequestsError,
    UnauthorizedError,
)
from tropicario.core.permissions import ensure_account_usable
from tropicario.core.security import (
    create_session_token,
    decode_session_token,
    generate_one_time_token,
    hash_one_time_token,
    hash_password,
    verify_password,
)
from tropicario.models import Comment, User, UserStatus
from tropicario.modules.accounts.email import EmailService

PROFILE_FIELDS = ("username", "email", "full_name", "age", "location", "bio")


def anonymize(user: User) -> None:
    """Soft-delete an account by wiping everything that identifies a person."""
    user.status = UserStatus.DISABLED
    user.username = f"deleted_user_{user.id}"
    user.email = f"deleted_{user.id}@deleted.com"
    user.full_name = ""
    user.avatar = ""
    user.age = None
    user.location = ""
    user.bio = ""
    clear_verification_token(user)
    clear_password_reset_token(user)


def clear_verification_token(user: User) -> None:
    user.verification_token = None
    user.verification_token_expires = None


def clear_password_reset_token(user: User) -> None:
    user.password_reset_token = None
    user.password_reset_token_expires = None


class AccountService:
    """
    Service for account lifecycle.

    Usage:
        accounts = AccountService(db_session, settings, email_service)
        user, token = await accounts.login("user@mail.com", "Password123!")
    """

    def __init__(self, db: AsyncSession, settings: Settings, email: EmailService) -> None:
        """Initialize account service with database session and collaborators."""
        self.db = db
        self.settings = settings
        self.email = email

    # ==================== Lookups ====================

    async def get_by_id(self, user_id: int) -> User | None:
        return await self.db.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        result = await self.db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        result = await self.db.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    # ==================== One-time tokens ====================

    def issue_verification_token(self, user: User) -> str:
        """
        Store a fresh verification token on the account.

        Any pending verification token is overwritten.

        Returns:
            Plaintext token, to be sent by email only
        """
        plain, hashed = generate_one_time_token()
        user.verification_token = hashed
        user.verification_token_expires = utcnow() + timedelta(
            hours=self.settings.verification_token_expire_hours
        )
        return plain

    def issue_password_reset_token(self, user: User) -> str:
        """
        Store a fresh password-reset token on the account.

        Raises:
            TooManyRequestsError: a reset token is still pending
        """
        if (
            user.password_reset_token
            and user.password_reset_token_expires
            and user.password_reset_token_expires > utcnow()
        ):
            raise TooManyRequestsError(
                "Password reset email was already sent. "
                "Please check your inbox or try again later."
            )

        plain, hashed = generate_one_time_token()
        user.password_reset_token = hashed
        user.password_reset_token_expires = utcnow() + timedelta(
            minutes=self.settings.password_reset_token_expire_minutes
        )
        return plain

    async def _find_by_verification_token(self, plain: str) -> User | None:
        result = await self.db.execute(
            select(User).where(
                User.verification_token == hash_one_time_token(plain),
                User.verification_token_expires > utcnow(),
            )
        )
        return result.scalar_one_or_none()

    async def find_by_reset_token(self, plain: str) -> User | None:
        """Account holding this unexpired reset token, if any."""
        result = await self.db.execute(
            select(User).where(
                User.password_reset_token == hash_one_time_token(plain),
                User.password_reset_token_expires > utcnow(),
            )
        )
        return result.scalar_one_or_none()

    # ==================== Registration & sessions ====================

    async def register(self, username: str, email: str, password: str) -> tuple[User, str]:
        """
        Create an account and email its verification link.

        The account and its token are flushed before the email goes out.
        A failed email send does not fail the registration; the token is
        cleared so it never stays valid without having been delivered.

        Returns:
            (user, session token)
        """
        user = User(
            username=username,
            email=email.lower(),
            hashed_password=hash_password(password, self.settings),
        )
        self.db.add(user)
        token = self.issue_verification_token(user)
        await self.db.flush()

        try:
            await self.email.send_verification(user.email, user.username, token)
        except Exception as e:
            logger.error(f"Verification email to {user.email} failed: {e}")
            clear_verification_token(user)

        await self.db.flush()
        logger.info(f"User registered: {user.username} (id={user.id})")
        return user, create_session_token(user.id, self.settings)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """
        Check credentials and open a session.

        Returns:
            (user, session token)
        """
        user = await self.get_by_email(email)
        if not user:
            raise NotFoundError("You don't have an account")

        if not verify_password(password, user.hashed_password, self.settings):
            raise UnauthorizedError("Invalid credentials")

        if not user.is_verified:
            raise ForbiddenError("Please verify your email before logging in")

        ensure_account_usable(user)

        user.last_active = utcnow()
        await self.db.flush()

        logger.info(f"User logged in: {user.username}")
        return user, create_session_token(user.id, self.settings)

    async def authenticate(self, token: str) -> User:
        """
        Resolve a session token to a usable account.

        Verification is not re-checked here; it only gates login.
        """
        user_id = decode_session_token(token, self.settings)
        user = await self.get_by_id(user_id)
        if not user:
            raise UnauthorizedError("User no longer exists")
        ensure_account_usable(user)
        return user

    async def touch(self, user: User) -> User:
        """Refresh the last-activity timestamp."""
        user.last_active = utcnow()
        await self.db.flush()
        return user

    # ==================== Email verification ====================

    async def verify_email(self, token: str) -> User | None:
        """
        Consume a verification token.

        Wrong, expired and already-used tokens are indistinguishable.

        Returns:
            The verified user, or None when the token is not valid
        """
        user = await self._find_by_verification_token(token)
        if not user:
            return None

        user.is_verified = True
        clear_verification_token(user)
        await self.db.flush()

        logger.info(f"Email verified: {user.username}")
        return user

    async def resend_verification(self, email: str) -> None:
        """Issue a new verification token and email it."""
        user = await self.get_by_email(email)
        if not user:
            raise NotFoundError("User not found")
        if user.is_verified:
            raise BadRequestError("Email is already verified")

        cooldown_edge = utcnow() + timedelta(
            hours=self.settings.verification_token_expire_hours,
            minutes=-self.settings.verification_resend_cooldown_minutes,
        )
        if user.verification_token_expires and user.verification_token_expires > cooldown_edge:
            raise TooManyRequestsError(
                "Verification email was already sent. Please wait before requesting another one."
            )

        token = self.issue_verification_token(user)
        await self.db.flush()
        try:
            await self.email.send_verification(user.email, user.username, token)
        except Exception as e:
            logger.error(f"Verification email to {user.email} failed: {e}")
            clear_verification_token(user)
            raise InternalServerError(
                "Failed to send verification email. Please try again later."
            )

        await self.db.flush()
        logger.info(f"Verification email re-sent: {user.username}")

    # ==================== Passwords ====================

    async def request_password_reset(self, email: str) -> bool:
        """
        Issue a reset token and email it.

        Returns:
            False when no account uses this email (callers must not reveal it)
        """
        user = await self.get_by_email(email)
        if not user or user.status == UserStatus.DISABLED:
            return False

        token = self.issue_password_reset_token(user)
        await self.db.flush()
        try:
            await self.email.send_password_reset(user.email, user.username, token)
        except Exception as e:
            logger.error(f"Password reset email to {user.email} failed: {e}")
            clear_password_reset_token(user)
            raise InternalServerError(
                "Failed to send password reset email. Please try again later."
            )

        await self.db.flush()
        logger.info(f"Password reset requested: {user.username}")
        return True

    async def reset_password(self, token: str, new_password: str) -> User:
        """Consume a reset token and replace the password."""
        user = await self.find_by_reset_token(token)
        if not user:
            raise BadRequestError("Password reset token is invalid or has expired")

        user.hashed_password = hash_password(new_password, self.settings)
        clear_password_reset_token(user)
        await self.db.flush()

        logger.info(f"Password reset completed: {user.username}")
        return user

    async def change_password(self, user: User, current: str, new: str) -> None:
        if not verify_password(current, user.hashed_password, self.settings):
            raise BadRequestError("Old password does not match")

        user.hashed_password = hash_password(new, self.settings)
        await self.db.flush()
        logger.info(f"Password changed: {user.username}")

    # ==================== Profile ====================

    async def get_public_profile(self, username: str) -> tuple[User, int]:
        """
        Look up a profile by username.

        Returns:
            (user, number of non-deleted comments)
        """
        user = await self.get_by_username(username)
        if not user or user.status == UserStatus.DISABLED:
            raise NotFoundError("User not found")

        comments_count = (
            await self.db.execute(
                select(func.count(Comment.id)).where(
                    Comment.author_id == user.id,
                    Comment.is_deleted == False,
                )
            )
        ).scalar_one()
        return user, comments_count

    async def update_profile(self, user: User, changes: dict[str, Any]) -> User:
        """Apply profile changes; duplicates surface as IntegrityError."""
        for field, value in changes.items():
            if field not in PROFILE_FIELDS:
                continue
            if field in ("username", "email") and value is None:
                continue
            if field == "email":
                value = value.lower()
            if field in ("full_name", "location", "bio") and value is None:
                value = ""
            setattr(user, field, value)

        await self.db.flush()
        return user

    async def disable_account(self, user: User, password: str) -> None:
        """Self-service soft delete."""
        if not verify_password(password, user.hashed_password, self.settings):
            raise UnauthorizedError("Incorrect password")
        if user.status == UserStatus.DISABLED:
            raise BadRequestError("Account is already disabled")

        username = user.username
        anonymize(user)
        await self.db.flush()
        logger.info(f"Account disabled by owner: {username} (id={user.id})")
