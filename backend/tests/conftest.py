"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across the unit tests, including
an in-memory SQLite database for storage and session tests.
"""

import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, AsyncGenerator, Generator
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file from project root, then force test values before the
# neurolex settings module is imported by any test module
_project_root = Path(__file__).parent.parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("OPENAI_API_KEY", "test-api-key")

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from neurolex.db.base import create_engine_for_url, init_db  # noqa: E402
from neurolex.models.learning import LearningItem  # noqa: E402


# ============================================================================
# Environment Configuration
# ============================================================================


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment() -> Generator[None, None, None]:
    """
    Set up test environment variables before any tests run.

    Restores the original environment afterwards.
    """
    original_env = os.environ.copy()

    os.environ.update(
        {
            "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
            "OPENAI_API_KEY": os.environ.get("OPENAI_API_KEY", "test-api-key"),
        }
    )

    yield

    os.environ.clear()
    os.environ.update(original_env)


# ============================================================================
# Sample Configuration Data
# ============================================================================


@pytest.fixture
def sample_yaml_config() -> dict[str, Any]:
    """
    Provide a sample YAML configuration for testing.

    This matches the structure of config/default.yaml.
    """
    return {
        "database": {"echo": False},
        "study": {
            "grade_options": [
                {"label": "Again", "grade": 1},
                {"label": "Good", "grade": 4},
            ],
        },
    }


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def db_engine():
    """
    In-memory SQLite engine with all tables created.

    StaticPool keeps a single connection so every session sees the same
    in-memory database.
    """
    engine = create_engine_for_url(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the in-memory engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    """A database session on the in-memory engine."""
    async with session_maker() as session:
        yield session


# ============================================================================
# Mock Fixtures
# ============================================================================


@pytest.fixture
def mock_db_session() -> MagicMock:
    """
    Create a mock database session for unit testing.
    """
    mock = MagicMock()
    mock.execute = AsyncMock()
    mock.commit = AsyncMock()
    mock.rollback = AsyncMock()
    mock.close = AsyncMock()
    mock.get = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def mock_llm_client() -> MagicMock:
    """LLM client mock with credentials configured."""
    mock = MagicMock()
    mock.has_credentials = MagicMock(return_value=True)
    mock.complete = AsyncMock()
    return mock


# ============================================================================
# Sample Data
# ============================================================================


@pytest.fixture
def fixed_now() -> datetime:
    """A fixed naive local timestamp (mid-afternoon)."""
    return datetime(2024, 3, 10, 15, 30, 0)


def make_item(
    term_id: str = "term-1",
    content: str = "ephemeral",
    definition: str = "lasting for a very short time",
    **overrides,
) -> LearningItem:
    """Build a LearningItem with sensible defaults."""
    data = {
        "id": term_id,
        "content": content,
        "definition": definition,
        "context": None,
        "created_at": 0,
        "interval": 0,
        "repetition": 0,
        "efactor": 2.5,
        "next_review_at": 0,
        "history": [],
    }
    data.update(overrides)
    return LearningItem(**data)


@pytest.fixture
def sample_item() -> LearningItem:
    """A fresh learning item."""
    return make_item()


@pytest.fixture
def item_factory():
    """Factory for LearningItems with overridable fields."""
    return make_item
