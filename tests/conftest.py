from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest

from tests.helpers.cases import FrozenClock
from tests.support.store import FakeUnitOfWorkFactory

os.environ.setdefault("DATABASE_URI", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CASESYNC_ENABLE_SCHEDULE", "false")

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def uow_factory() -> FakeUnitOfWorkFactory:
    return FakeUnitOfWorkFactory()


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def database_uri(tmp_path: Path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'casesync.db'}"
