"""SQLAlchemy adapter package for casesync."""

from __future__ import annotations

from .mappings import create_all_tables, mapper_registry, start_mappers
from .repositories import (
    SqlAlchemyCaseRepository,
    SqlAlchemyContactRepository,
    SqlAlchemyParticipantRepository,
    SqlAlchemySyncLogRepository,
    SqlAlchemyUserRepository,
    store_errors,
)
from .unit_of_work import (
    SqlAlchemySyncUnitOfWork,
    StartupError,
    build_engine,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyCaseRepository",
    "SqlAlchemyContactRepository",
    "SqlAlchemyParticipantRepository",
    "SqlAlchemySyncLogRepository",
    "SqlAlchemySyncUnitOfWork",
    "SqlAlchemyUserRepository",
    "StartupError",
    "build_engine",
    "create_all_tables",
    "mapper_registry",
    "shutdown",
    "start_mappers",
    "startup",
    "store_errors",
]
