from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import text

from unisync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    StartupError,
    build_engine,
    configured_engine,
    is_started,
    shutdown,
    startup,
)
from unisync.domain.errors import PersistenceError
from unisync.domain.model import EntityIdentity, NormalizedRecord

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from sqlalchemy.engine import Engine


@pytest.fixture(autouse=True)
def reset_unit_of_work_state() -> Iterator[None]:
    shutdown()
    yield
    shutdown()


def _record(source_id: str) -> NormalizedRecord:
    return NormalizedRecord(
        identity=EntityIdentity("Salesforce", "Contact", source_id),
        canonical_type="Person",
        core_data={"first_name": "Ada"},
        extended_data={},
        raw_data={"Id": source_id, "SystemModstamp": datetime(2024, 1, 15, tzinfo=UTC)},
    )


def test_sqlalchemy_unit_of_work_requires_startup() -> None:
    assert not is_started()
    with pytest.raises(StartupError):
        SqlAlchemyUnitOfWork()


def test_startup_requires_force_for_reconfiguration(tmp_path: Path) -> None:
    engine_a = build_engine(f"sqlite+pysqlite:///{tmp_path / 'a.db'}")
    engine_b = build_engine(f"sqlite+pysqlite:///{tmp_path / 'b.db'}")

    startup(engine=engine_a, force=True)

    with pytest.raises(StartupError):
        startup(engine=engine_b)

    startup(engine=engine_b, force=True)
    assert configured_engine() is engine_b


def test_startup_from_database_uri_runs_migrations(tmp_path: Path) -> None:
    engine = startup(database_uri=f"sqlite+pysqlite:///{tmp_path / 'fresh.db'}")

    with engine.connect() as connection:
        version = connection.execute(text("SELECT version_num FROM alembic_version")).scalar_one()

    assert version == "0001_initial"


def test_unit_of_work_commits_and_rolls_back(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with SqlAlchemyUnitOfWork() as uow:
        uow.repositories.entities.upsert(_record("kept"), synced_at=datetime.now(tz=UTC))
        uow.commit()

    with pytest.raises(RuntimeError, match="abort"), SqlAlchemyUnitOfWork() as uow:
        uow.repositories.entities.upsert(_record("dropped"), synced_at=datetime.now(tz=UTC))
        raise RuntimeError("abort")

    with SqlAlchemyUnitOfWork() as uow:
        assert uow.repositories.entities.count() == 1
        kept = uow.repositories.entities.get_by_identity(
            EntityIdentity("Salesforce", "Contact", "kept")
        )

    assert kept is not None
    # non-JSON values in the raw payload are stored as text
    assert kept.raw_data["SystemModstamp"] == "2024-01-15 00:00:00+00:00"


def test_storage_errors_surface_as_persistence_errors(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)

    with pytest.raises(PersistenceError), SqlAlchemyUnitOfWork() as uow:
        uow.session.execute(text("SELECT * FROM no_such_table"))


def test_repositories_unavailable_outside_block(sqlite_engine: Engine) -> None:
    startup(engine=sqlite_engine, force=True)
    uow = SqlAlchemyUnitOfWork()

    with pytest.raises(StartupError):
        _ = uow.repositories
