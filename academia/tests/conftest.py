"""
Shared fixtures: an application bound to a fresh in-memory SQLite database,
an HTTP client over ASGI, and helpers to create users and auth headers.
"""
import copy
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from academia.config import Settings
from academia.errors import GenerationFailedError
from academia.main import create_app
from academia.orm.user import User, UserRole
from academia.rbac import create_access_token, hash_password
from academia.services.content_generator import SAMPLE_QUESTIONS, ContentGenerator

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class FakeContentGenerator(ContentGenerator):
    """Deterministic generator that records its calls and can be told to fail."""

    name = "fake"

    def __init__(self):
        self.calls: List[tuple] = []
        self.error: Optional[GenerationFailedError] = None

    async def generate(self, content_type, course_id, context=None):
        self.calls.append((content_type, course_id, context))
        if self.error is not None:
            raise self.error
        return copy.deepcopy(SAMPLE_QUESTIONS[content_type])


def make_settings(database_url: str = TEST_DATABASE_URL) -> Settings:
    return Settings(
        database_url=database_url,
        jwt_secret_key="test-secret-key",
        rate_limit_enabled=False,
        content_generator="template",
        environment="test",
    )


async def build_app(settings: Settings):
    app = create_app(settings)
    await app.state.database.create_all()
    app.state.content_generator = FakeContentGenerator()
    return app


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def app(settings):
    app = await build_app(settings)
    yield app
    await app.state.database.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def db(app):
    async with app.state.database.session_factory() as session:
        yield session


@pytest.fixture
def generator(app) -> FakeContentGenerator:
    return app.state.content_generator


async def create_user(app, email: str, role: UserRole = UserRole.FACULTY, name: Optional[str] = None,
                      password: str = "secret123") -> User:
    async with app.state.database.session_factory() as session:
        user = User(
            email=email,
            name=name or email.split("@")[0].title(),
            password_hash=hash_password(password),
            role=role,
        )
        session.add(user)
        await session.commit()
        return user


def auth_headers(app, user: User) -> Dict[str, str]:
    token = create_access_token(user, app.state.settings)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin(app) -> User:
    return await create_user(app, "admin@test.com", UserRole.ADMIN, name="Admin")


@pytest_asyncio.fixture
async def faculty(app) -> User:
    return await create_user(app, "faculty@test.com", UserRole.FACULTY, name="Faculty F")


@pytest_asyncio.fixture
async def other_faculty(app) -> User:
    return await create_user(app, "other@test.com", UserRole.FACULTY, name="Faculty G")


@pytest.fixture
def admin_headers(app, admin) -> Dict[str, str]:
    return auth_headers(app, admin)


@pytest.fixture
def faculty_headers(app, faculty) -> Dict[str, str]:
    return auth_headers(app, faculty)


@pytest.fixture
def other_headers(app, other_faculty) -> Dict[str, str]:
    return auth_headers(app, other_faculty)


QUIZ_QUESTIONS: List[Dict[str, Any]] = [
    {"question": "What is the worst case of quicksort?", "options": ["O(n)", "O(n log n)", "O(n^2)"],
     "answer": "O(n^2)"},
    {"question": "Which structure gives O(1) lookup?", "options": ["List", "Hash table"], "answer": "Hash table"},
    {"question": "Is merge sort stable?", "options": ["Yes", "No"], "answer": "Yes"},
]


async def create_course(client, headers, code: str = "CS301", **extra) -> Dict[str, Any]:
    payload = {"name": "Algorithms", "code": code, "credit_hours": 3, **extra}
    response = await client.post("/api/courses", json=payload, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


async def assign(client, headers, faculty_id: int, course_id: int) -> Dict[str, Any]:
    response = await client.post(
        "/api/courses/assign-faculty",
        json={"faculty_id": faculty_id, "course_id": course_id},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()
