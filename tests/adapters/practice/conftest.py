from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tests.helpers.cases import make_matter
from tests.support.practice import FakePracticeAPI, make_practice_config

if TYPE_CHECKING:
    from pathlib import Path

    from casesync.config.practice import PracticeConfig


@pytest.fixture
def practice_api() -> FakePracticeAPI:
    return FakePracticeAPI(matters=[make_matter(f"m-{index}") for index in range(5)])


@pytest.fixture
def practice_config(tmp_path: Path) -> PracticeConfig:
    return make_practice_config(tmp_path)
