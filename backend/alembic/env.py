import asyncio
from logging.config import fileConfig

from alembic import context
from sqlalchemy.ext.asyncio import create_async_engine

from settleup.core.config import settings
from settleup.core.database import Base, _connect_args, _get_async_url

# Register the ledger tables with Base.metadata
from settleup.models import *  # noqa: F401, F403

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _migration_engine_options() -> tuple[str, dict]:
    """
    URL and connect args for migrations.

    A direct URL bypasses pgBouncer, so the statement-cache workaround only
    applies when migrations fall back to the pooled ``database_url``.
    """
    if settings.direct_database_url:
        return _get_async_url(settings.direct_database_url), {}
    return _get_async_url(settings.database_url), _connect_args()


def run_migrations_offline() -> None:
    url, _ = _migration_engine_options()
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection):
    context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
    with context.begin_transaction():
        context.run_migrations()


async def run_async_migrations() -> None:
    url, connect_args = _migration_engine_options()
    connectable = create_async_engine(url, connect_args=connect_args)
    async with connectable.connect() as connection:
        await connection.run_sync(do_run_migrations)
    await connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_async_migrations())
