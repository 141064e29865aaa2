import asyncio

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from app import config as app_config
from app.db import Base
from app import models  # noqa: F401  registers calendar_entries on Base.metadata

target_metadata = Base.metadata


def run_migrations_offline():
    context.configure(
        url=app_config.DATABASE_URL,
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online():
    engine = create_async_engine(app_config.DATABASE_URL)
    async with engine.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
