"""
Environnement Alembic de coldstore.

L'URL vient de `settings.database_url` (DATABASE_URL dans .env) ;
celle de alembic.ini ne sert que de valeur par défaut.
"""

from __future__ import annotations

import os
import sys
from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool

from alembic import context

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# alembic est lancé depuis la racine du dépôt, sans installation du paquet
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from coldstore.app.core.config import settings  # noqa: E402
from coldstore.app.db.base import Base  # noqa: E402
from coldstore.app.db.models import models_v1  # noqa: F401,E402  lots, commandes, mouvements

target_metadata = Base.metadata
config.set_main_option("sqlalchemy.url", settings.database_url)


def _configure(**kwargs) -> None:
    # compare_type : les enums de zone et de statut doivent suivre le modèle
    context.configure(target_metadata=target_metadata, compare_type=True, **kwargs)


def run_offline() -> None:
    _configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_online() -> None:
    engine = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with engine.connect() as connection:
        _configure(connection=connection)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_offline()
else:
    run_online()
