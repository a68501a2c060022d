"""Pytest configuration for all tests."""

import os
import tempfile
from typing import AsyncGenerator, Awaitable, Callable

# Settings are cached on first use, so the environment is prepared before
# anything from studybuddy is imported.
os.environ["STUDYBUDDY_ENVIRONMENT"] = "testing"
os.environ["STUDYBUDDY_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["STUDYBUDDY_JWT_SECRET"] = "test-secret-with-enough-length-for-hs256"
os.environ["STUDYBUDDY_STORAGE_PATH"] = tempfile.mkdtemp(prefix="studybuddy-files-")
os.environ["STUDYBUDDY_LOG_FORMAT"] = "console"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from studybuddy.infrastructure.auth import jwt_service
from studybuddy.infrastructure.persistence import models  # noqa: F401
from studybuddy.infrastructure.persistence.database import Base, enable_sqlite_foreign_keys
from studybuddy.infrastructure.persistence.models import UserModel

ALICE_SUBJECT = "a11ce000-0000-4000-8000-000000000001"
BOB_SUBJECT = "b0b00000-0000-4000-8000-000000000002"
CAROL_SUBJECT = "ca401000-0000-4000-8000-000000000003"


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session.

    Uses an in-memory SQLite database for testing.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_maker() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[UserModel]]:
    """Factory inserting users directly, bypassing identity resolution."""

    async def _make_user(name: str, email: str | None = None) -> UserModel:
        user = UserModel(name=name, email=email or f"{name.lower()}@example.com")
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with overridden database dependency."""
    from studybuddy.infrastructure.api.app import app
    from studybuddy.infrastructure.persistence.database import get_db_session

    app.dependency_overrides[get_db_session] = lambda: db_session

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides = {}
    await app.state.event_broadcaster.drain()
    await app.state.connection_manager.close()


def auth_headers(subject: str, email: str, name: str | None = None) -> dict[str, str]:
    token = jwt_service.create_token(subject, email, name=name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def alice_headers() -> dict[str, str]:
    return auth_headers(ALICE_SUBJECT, "alice@example.com", "Alice")


@pytest.fixture
def bob_headers() -> dict[str, str]:
    return auth_headers(BOB_SUBJECT, "bob@example.com", "Bob")


@pytest.fixture
def carol_headers() -> dict[str, str]:
    return auth_headers(CAROL_SUBJECT, "carol@example.com", "Carol")


@pytest.fixture
def headers_for() -> Callable[..., dict[str, str]]:
    """Factory for headers of arbitrary identities."""
    return auth_headers


def build_pdf(*lines: str) -> bytes:
    """Assemble a one-page PDF showing each line in Helvetica.

    With no lines the page is blank, like a scanned document.
    """
    operators = [f"({line}) Tj 0 -16 Td" for line in lines]
    stream = ("BT /F1 12 Tf 72 720 Td " + " ".join(operators) + " ET").encode() if lines else b""
    objects = [
        b"<< /Type /Catalog /Pages 2 0 R >>",
        b"<< /Type /Pages /Kids [3 0 R] /Count 1 >>",
        b"<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
        b"/Resources << /Font << /F1 4 0 R >> >> /Contents 5 0 R >>",
        b"<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
        b"<< /Length %d >>\nstream\n%s\nendstream" % (len(stream), stream),
    ]

    pdf = b"%PDF-1.4\n"
    offsets = []
    for number, body in enumerate(objects, start=1):
        offsets.append(len(pdf))
        pdf += b"%d 0 obj\n%s\nendobj\n" % (number, body)
    xref_at = len(pdf)
    pdf += b"xref\n0 %d\n0000000000 65535 f \n" % (len(objects) + 1)
    for offset in offsets:
        pdf += b"%010d 00000 n \n" % offset
    pdf += b"trailer\n<< /Size %d /Root 1 0 R >>\nstartxref\n%d\n%%%%EOF\n" % (len(objects) + 1, xref_at)
    return pdf


@pytest.fixture
def make_pdf() -> Callable[..., bytes]:
    """Factory for small in-memory PDFs."""
    return build_pdf
