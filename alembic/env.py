"""
alembic 마이그레이션 실행 환경.

- DB 주소는 .env / 환경 변수의 DATABASE_URL (gogostudy.core.config) 사용
- target_metadata 는 gogostudy.models 가 등록한 Base.metadata

사용 방법
- (.venv) ~\backend~$ alembic upgrade head

"""

from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

from gogostudy.core.config import settings
from gogostudy.db.base import Base

import gogostudy.models  # noqa: F401  (metadata 등록)

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
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
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
