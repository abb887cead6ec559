from __future__ import annotations

import json
from typing import Any
from uuid import uuid4

import pytest

from casesync.app import SyncApplication
from casesync.config.sync import ScheduleConfig
from casesync.ui import cli
from tests.helpers.cases import FrozenClock, make_case
from tests.support.store import FakeUnitOfWorkFactory


@pytest.fixture
def application(
    monkeypatch: pytest.MonkeyPatch, uow_factory: FakeUnitOfWorkFactory, clock: FrozenClock
) -> SyncApplication:
    app = SyncApplication(
        unit_of_work_factory=uow_factory,
        schedule_config=ScheduleConfig(enabled=False),
        clock=clock,
    )

    async def fake_build(*, database_uri: str | None = None) -> SyncApplication:
        _ = database_uri
        return app

    async def fake_shutdown() -> None:
        return None

    monkeypatch.setattr(cli, "build_application", fake_build)
    monkeypatch.setattr(cli, "shutdown", fake_shutdown)
    monkeypatch.setattr(cli, "configure_logging", lambda **_: None)
    return app


def _output(capsys: pytest.CaptureFixture[str]) -> Any:
    return json.loads(capsys.readouterr().out)


def test_invalid_case_id_exits_with_usage_error(application: SyncApplication) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync-case", "not-a-uuid"])

    assert excinfo.value.code == 2


def test_non_positive_history_limit_is_rejected(application: SyncApplication) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["history", "--limit", "0"])

    assert excinfo.value.code == 2


def test_sync_case_prints_result(
    application: SyncApplication,
    uow_factory: FakeUnitOfWorkFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    case = make_case()
    uow_factory.store.cases[case.id] = case

    cli.main(["sync-case", str(case.id)])

    payload = _output(capsys)
    assert payload["status"] == "completed"
    assert payload["results"]["case_id"] == str(case.id)


def test_sync_case_for_unknown_case_exits_nonzero(
    application: SyncApplication, capsys: pytest.CaptureFixture[str]
) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["sync-case", str(uuid4())])

    assert excinfo.value.code == 1
    assert _output(capsys)["status"] == "crashed"


def test_history_prints_statistics_and_entries(
    application: SyncApplication,
    uow_factory: FakeUnitOfWorkFactory,
    capsys: pytest.CaptureFixture[str],
) -> None:
    case = make_case()
    uow_factory.store.cases[case.id] = case
    cli.main(["sync-full", "--reason", "cli-test"])
    capsys.readouterr()

    cli.main(["history", "--status", "completed", "--stats-days", "1"])

    payload = _output(capsys)
    assert payload["statistics"]["completed"] == 1
    (entry,) = payload["entries"]
    assert entry["case_id"] == str(case.id)
    assert entry["trigger"] == "full"


def test_status_reports_disabled_schedule(
    application: SyncApplication, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.main(["status"])

    payload = _output(capsys)
    assert payload == {
        "is_running": False,
        "scheduled_triggers_active": False,
        "active_triggers": [],
        "next_scheduled_runs": {},
    }
