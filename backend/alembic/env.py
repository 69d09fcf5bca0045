"""Migrations for the clubhouse schema.

Covers identity (principals, sessions, reset requests, notices), member
profiles, events and their RSVPs, the feed, the audit log, the finance
ledger and reference data. The URL comes from ``settings.DATABASE_URL``.
SQLite runs in batch mode because it cannot ALTER columns in place, and
column type changes (enums, numeric precision) are compared on autogenerate.
"""
from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from clubhouse.config import settings
from clubhouse.database import Base

# Import all models so they register with Base.metadata
from clubhouse.models.principal import Principal, AuthSession, PasswordResetRequest, AuthNotice  # noqa: F401
from clubhouse.models.profile import Profile                    # noqa: F401
from clubhouse.models.event import Event                        # noqa: F401
from clubhouse.models.rsvp import EventRsvp                     # noqa: F401
from clubhouse.models.post import Post, PostLike, Comment       # noqa: F401
from clubhouse.models.audit_log import AuditLog                 # noqa: F401
from clubhouse.models.transaction import FinanceTransaction     # noqa: F401
from clubhouse.models.reference import Link, Partner            # noqa: F401

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == "sqlite",
            compare_type=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
