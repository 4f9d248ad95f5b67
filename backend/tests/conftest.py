"""Shared fixtures: in-memory database, fake clock and scripted model gateway."""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.agents.base import ModelResponse, SearchTools
from app.db.postgres import init_db
from app.schemas.radar import Post


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeGateway:
    """
    Model gateway that answers from a handler.

    The handler gets (prompt, tools) and returns reply text, a ModelResponse,
    or an exception to raise.
    """

    def __init__(self, handler: Callable[[str, SearchTools | None], object]) -> None:
        self.handler = handler
        self.calls: list[tuple[str, SearchTools | None]] = []
        self.closed = False

    async def generate(self, prompt: str, tools: SearchTools | None = None) -> ModelResponse:
        self.calls.append((prompt, tools))
        result = self.handler(prompt, tools)
        if isinstance(result, Exception):
            raise result
        if isinstance(result, ModelResponse):
            return result
        return ModelResponse(text=str(result))

    async def close(self) -> None:
        self.closed = True


def make_post(url: str, **fields: object) -> Post:
    return Post(url=url, title=fields.pop("title", f"Title for {url}"), **fields)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 10, 19, 12, 0, tzinfo=UTC))


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    async with async_sessionmaker(engine, expire_on_commit=False)() as session:
        yield session
