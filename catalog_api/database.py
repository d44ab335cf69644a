# catalog_api/database.py
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import (
    Column,
    DateTime,
    Integer,
    MetaData,
    Numeric,
    String,
    Table,
    Text,
    func,
    text,
)
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

# This file holds the table definition and the pooled storage client.

metadata = MetaData()

products = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("slug", String(255), nullable=False, unique=True),
    Column("description", Text, nullable=True),
    Column("price", Numeric(10, 2), nullable=False),
    Column("category", String(100), nullable=False),
    Column("stock", Integer, nullable=False, server_default=text("0")),
    Column("imageUrl", String(500), nullable=True),
    Column("createdAt", DateTime, nullable=False, server_default=func.now()),
)


class Database:
    """
    Owns the async engine (and with it the bounded connection pool).
    Built once at startup and handed to the service; disposed on shutdown.
    """

    def __init__(self, url: str, pool_size: int = 10, pool_timeout: float = 30.0, echo: bool = False):
        self.url = url
        kwargs = {"echo": echo, "pool_pre_ping": True}
        if make_url(url).get_backend_name() != "sqlite":
            # no overflow: pool_size is the hard cap, extra callers wait in the pool queue
            kwargs.update(pool_size=pool_size, max_overflow=0, pool_timeout=pool_timeout)
        self.engine: AsyncEngine = create_async_engine(url, **kwargs)

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[AsyncConnection]:
        """Read-only connection; nothing is committed."""
        async with self.engine.connect() as conn:
            yield conn

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[AsyncConnection]:
        """Connection inside a transaction, committed when the block exits cleanly."""
        async with self.engine.begin() as conn:
            yield conn

    async def ping(self) -> bool:
        async with self.connect() as conn:
            result = await conn.execute(text("SELECT 1 AS ok"))
            return result.scalar_one() == 1

    async def create_schema(self) -> None:
        async with self.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self.engine.dispose()
