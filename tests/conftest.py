from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.engine import Engine  # noqa: TC002

from unisync.adapters.sqlalchemy import start_mappers
from unisync.adapters.sqlalchemy.migrations import upgrade_head
from unisync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyUnitOfWork,
    build_engine,
    shutdown,
    startup,
)
from unisync.config import SyncConfig
from unisync.domain.sync import SyncOrchestrator
from tests.helpers.registry import build_registry

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from pathlib import Path

    from unisync.domain.schema import SchemaRegistry


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    # file-backed so fan-out worker threads share one database
    engine = build_engine(f"sqlite+pysqlite:///{tmp_path / 'unisync.db'}")
    start_mappers()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_unit_of_work(
    sqlite_engine: Engine,
) -> Iterator[Callable[[], SqlAlchemyUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemyUnitOfWork:
        return SqlAlchemyUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def registry() -> SchemaRegistry:
    return build_registry()


@pytest.fixture
def orchestrator(
    registry: SchemaRegistry,
    sqlite_unit_of_work: Callable[[], SqlAlchemyUnitOfWork],
) -> SyncOrchestrator:
    return SyncOrchestrator(registry, sqlite_unit_of_work, config=SyncConfig(fanout_workers=4))
