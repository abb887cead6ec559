"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import CaseSourceFetcher, SourceCaseRecord
from .persistence import (
    CaseRepository,
    ContactRepository,
    ParticipantRepository,
    PersonLookup,
    PersonRepository,
    Repository,
    SyncLogRepository,
    UserRepository,
)
from .unit_of_work import (
    RepositoryCollection,
    SyncRepositories,
    SyncUnitOfWork,
    SyncUnitOfWorkFactory,
    UnitOfWork,
)

__all__ = [
    "CaseRepository",
    "CaseSourceFetcher",
    "ContactRepository",
    "ParticipantRepository",
    "PersonLookup",
    "PersonRepository",
    "Repository",
    "RepositoryCollection",
    "SourceCaseRecord",
    "SyncLogRepository",
    "SyncRepositories",
    "SyncUnitOfWork",
    "SyncUnitOfWorkFactory",
    "UnitOfWork",
    "UserRepository",
]
