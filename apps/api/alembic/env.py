from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from alembic import context

from dotenv import load_dotenv

# .env in apps/api/ must be loaded before the settings object is built
load_dotenv()

from app.core.config import settings  # noqa: E402
from app.core.database import Base  # noqa: E402

# Every model module must be imported so its table lands on Base.metadata
from app.models.tenant import Tenant  # noqa: E402,F401
from app.models.user import User  # noqa: E402,F401
from app.models.site import Site  # noqa: E402,F401
from app.models.position_template import PositionTemplate  # noqa: E402,F401
from app.models.schedule_slot import ScheduleSlot  # noqa: E402,F401
from app.models.audit_log import AuditLog  # noqa: E402,F401
from app.models.rendicion import Rendicion  # noqa: E402,F401
from app.models.rendicion_approval import RendicionApproval  # noqa: E402,F401
from app.models.rendicion_history import RendicionHistory  # noqa: E402,F401
from app.models.rendicion_config import RendicionConfig  # noqa: E402,F401

config = context.config

# sqlalchemy.url comes from DATABASE_URL, never from alembic.ini
config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit SQL to stdout instead of connecting."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
