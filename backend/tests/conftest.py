"""
Pytest configuration and fixtures for fleet service tests.

Provides:
- Async SQLite in-memory database setup
- SQLAlchemyNodeRepository over a fresh session
- A node factory that persists nodes with sensible defaults
- A repository whose saves can be made to fail for chosen nodes
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from database import Base
from models import Node
from services.errors import NodePersistenceError
from services.node_repository import SQLAlchemyNodeRepository


DOMAIN = "example.net"


class FailingNodeRepository(SQLAlchemyNodeRepository):
    """Repository that refuses to save the nodes named in `fail_on`."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.fail_on = set()
        self.saved = []

    async def save(self, node: Node) -> None:
        if node.name in self.fail_on:
            name = node.name
            await self._rollback(node, self._snapshot(node))
            raise NodePersistenceError(name, "simulated write failure")
        await super().save(node)
        self.saved.append(node.name)


@pytest_asyncio.fixture
async def db_session():
    """
    Fresh in-memory database per test.

    Yields:
        AsyncSession bound to an engine with all tables created.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        future=True,
    )
    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture
async def repository(db_session):
    return FailingNodeRepository(db_session)


@pytest_asyncio.fixture
async def make_node(repository):
    """
    Factory persisting a node. `handle` becomes '<handle>.example.net'.

    Usage:
        node = await make_node("n1", state="ready", allocated=True)
    """

    async def _make(handle: str, **fields) -> Node:
        values = {
            "state": "ready",
            "allocated": False,
            "admin": False,
            "group_order": 0,
            "roles": [],
            "attributes": {},
            "networks": {},
            "unmanaged_interfaces": {},
        }
        values.update(fields)
        node = Node(name=f"{handle}.{DOMAIN}", **values)
        await repository.add(node)
        return node

    return _make
