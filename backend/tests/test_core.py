from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt
from sqlalchemy.exc import IntegrityError

from tropicario.core.config import Settings
from tropicario.core.errors import UnauthorizedError, duplicate_field, to_camel
from tropicario.core.pagination import Page
from tropicario.core.security import (
    create_session_token,
    decode_session_token,
    generate_one_time_token,
    hash_one_time_token,
    hash_password,
    verify_password,
)
from tropicario.modules.forum.slugs import make_slug, make_topic_slug


# ==================== Slugs ====================


@pytest.mark.parametrize(
    "title, slug",
    [
        ("Reef Tanks", "reef-tanks"),
        ("  Nano   Tanks  ", "nano-tanks"),
        ("Fish & Plants!", "fish-plants"),
        ("Salt -- water", "salt-water"),
        ("Café Society", "caf-society"),
        ("2024 Meetup", "2024-meetup"),
    ],
)
def test_make_slug(title, slug):
    assert make_slug(title) == slug


def test_topic_slug_has_millisecond_suffix():
    base, _, suffix = make_topic_slug("Hello World").rpartition("-")
    assert base == "hello-world"
    assert suffix.isdigit() and len(suffix) == 13


# ==================== Pagination ====================


@pytest.mark.parametrize(
    "total, page, limit, pages, has_next, has_prev",
    [
        (0, 1, 10, 0, False, False),
        (30, 1, 10, 3, True, False),
        (30, 3, 10, 3, False, True),
        (31, 3, 10, 4, True, True),
        (5, 2, 10, 1, False, True),
    ],
)
def test_page_meta(total, page, limit, pages, has_next, has_prev):
    meta = Page(items=[], total=total, page=page, limit=limit).meta()
    assert meta == {
        "currentPage": page,
        "totalPages": pages,
        "totalItems": total,
        "limit": limit,
        "hasNextPage": has_next,
        "hasPrevPage": has_prev,
    }


# ==================== Errors ====================


@pytest.mark.parametrize(
    "message, field",
    [
        ("UNIQUE constraint failed: users.email", "email"),
        ("UNIQUE constraint failed: users.full_name", "fullName"),
        (
            'duplicate key value violates unique constraint "users_username_key"\n'
            "DETAIL:  Key (username)=(alice) already exists.",
            "username",
        ),
        ("NOT NULL constraint failed: users.email", None),
    ],
)
def test_duplicate_field(message, field):
    exc = IntegrityError("INSERT INTO users ...", {}, Exception(message))
    assert duplicate_field(exc) == field


def test_to_camel():
    assert to_camel("last_activity_at") == "lastActivityAt"
    assert to_camel("slug") == "slug"


# ==================== Security ====================


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, jwt_secret_key="unit-secret", bcrypt_rounds=4)


def test_password_hashing(settings):
    hashed = hash_password("Password123!", settings)
    assert hashed != "Password123!"
    assert verify_password("Password123!", hashed, settings)
    assert not verify_password("password123!", hashed, settings)


def test_session_token_roundtrip(settings):
    assert decode_session_token(create_session_token(42, settings), settings) == 42


def test_expired_session_token(settings):
    past = datetime.now(timezone.utc) - timedelta(days=2)
    token = jwt.encode(
        {"sub": "1", "exp": int((past + timedelta(days=1)).timestamp())},
        settings.jwt_secret_key,
        algorithm=settings.jwt_algorithm,
    )
    with pytest.raises(UnauthorizedError, match="Token expired. Please login again."):
        decode_session_token(token, settings)


def test_foreign_session_token(settings):
    token = jwt.encode({"sub": "1"}, "someone-else", algorithm=settings.jwt_algorithm)
    with pytest.raises(UnauthorizedError, match="Invalid token"):
        decode_session_token(token, settings)


def test_one_time_tokens_store_only_the_hash():
    plain, hashed = generate_one_time_token()
    assert len(plain) == 64
    assert hashed == hash_one_time_token(plain)
    assert hashed != plain
    assert generate_one_time_token()[0] != plain


# ==================== Config ====================


def test_postgres_url_uses_asyncpg():
    settings = Settings(_env_file=None, database_url="postgresql://u:p@db/forum")
    assert settings.database_url == "postgresql+asyncpg://u:p@db/forum"
    assert not settings.is_production
