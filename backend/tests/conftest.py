import re

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.pool import StaticPool

from tropicario.core.config import Settings
from tropicario.core.database import Database
from tropicario.core.security import create_session_token, hash_password
from tropicario.main import create_app
from tropicario.models import User, UserRole
from tropicario.modules.accounts.email import OutgoingEmail

PASSWORD = "Password123!"


class RecordingTransport:
    """Email transport that keeps messages in memory."""

    def __init__(self) -> None:
        self.sent: list[OutgoingEmail] = []
        self.fail = False

    async def send(self, message: OutgoingEmail) -> None:
        if self.fail:
            raise ConnectionError("SMTP server unavailable")
        self.sent.append(message)

    def last_token(self, kind: str) -> str:
        """Plaintext token from the newest ``verify-email`` or ``reset-password`` link."""
        for message in reversed(self.sent):
            match = re.search(rf"/{kind}/([0-9a-f]{{64}})", message.text)
            if match:
                return match.group(1)
        raise AssertionError(f"no {kind} email was sent")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        environment="test",
        database_url="sqlite+aiosqlite://",
        jwt_secret_key="test-secret",
        bcrypt_rounds=4,
        log_level="WARNING",
    )


@pytest.fixture
async def database(settings):
    db = Database(
        settings.database_url,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def mailer() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def app(settings, database, mailer):
    return create_app(settings=settings, database=database, email_transport=mailer)


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(database, settings):
    """Insert an account directly, verified unless told otherwise."""

    async def _make(
        username: str,
        role: UserRole = UserRole.USER,
        verified: bool = True,
        password: str = PASSWORD,
        **fields,
    ) -> User:
        async with database.session() as session:
            user = User(
                username=username,
                email=f"{username}@mail.com",
                hashed_password=hash_password(password, settings),
                role=role,
                is_verified=verified,
                **fields,
            )
            session.add(user)
            await session.commit()
            return user

    return _make


@pytest.fixture
def headers_for(settings):
    """Request headers carrying a session cookie for the given user."""

    def _headers(user: User) -> dict[str, str]:
        return {"Cookie": f"token={create_session_token(user.id, settings)}"}

    return _headers


@pytest.fixture
def fetch_user(database):
    async def _fetch(user_id: int) -> User:
        async with database.session() as session:
            return (await session.execute(select(User).where(User.id == user_id))).scalar_one()

    return _fetch


@pytest.fixture
async def member(make_user) -> User:
    return await make_user("member")


@pytest.fixture
async def admin(make_user) -> User:
    return await make_user("admin", role=UserRole.ADMIN)


@pytest.fixture
def member_headers(member, headers_for) -> dict[str, str]:
    return headers_for(member)


@pytest.fixture
def admin_headers(admin, headers_for) -> dict[str, str]:
    return headers_for(admin)


@pytest.fixture
def forum(client, admin_headers, member_headers):
    """Helpers that build content through the API."""

    class Forum:
        async def section(self, title: str = "Aquariums", **extra) -> dict:
            res = await client.post(
                "/api/v1/sections", json={"title": title, **extra}, headers=admin_headers
            )
            assert res.status_code == 201, res.text
            return res.json()["data"]

        async def thread(self, section_slug: str, title: str = "Reef Tanks", **extra) -> dict:
            res = await client.post(
                "/api/v1/threads",
                json={"sectionSlug": section_slug, "title": title, **extra},
                headers=admin_headers,
            )
            assert res.status_code == 201, res.text
            return res.json()["data"]

        async def topic(
            self,
            thread_slug: str,
            title: str = "Best corals for beginners",
            headers: dict | None = None,
        ) -> dict:
            res = await client.post(
                "/api/v1/topics",
                json={"threadSlug": thread_slug, "title": title, "content": "Looking for tips."},
                headers=headers or member_headers,
            )
            assert res.status_code == 201, res.text
            return res.json()["data"]

        async def comment(self, topic_slug: str, content: str = "Try zoanthids.", headers=None) -> dict:
            res = await client.post(
                f"/api/v1/comments/{topic_slug}",
                json={"content": content},
                headers=headers or member_headers,
            )
            assert res.status_code == 201, res.text
            return res.json()["data"]

        async def get(self, path: str) -> dict:
            res = await client.get(f"/api/v1{path}")
            assert res.status_code == 200, res.text
            return res.json()["data"]

    return Forum()
