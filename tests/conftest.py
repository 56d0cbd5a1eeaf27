from __future__ import annotations

import json
import logging
from typing import Any, Iterator

import pytest

from order_archive.config import ArchiveConfig
from order_archive.handler import OrderArchiveHandler
from tests.fakes import FakeStore


@pytest.fixture
def valid_order() -> dict[str, Any]:
    return {
        "id": "o1",
        "createdAt": "2024-01-01T00:00:00Z",
        "lastModifiedAt": "2024-01-01T00:00:00Z",
        "resource": {},
        "resourceVersion": 1,
        "sequenceNumber": 1,
        "type": "OrderCreated",
        "version": 1,
        "order": {},
    }


@pytest.fixture
def config() -> ArchiveConfig:
    return ArchiveConfig(project_id="test-project", collection_name="orders")


@pytest.fixture
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def handler(config: ArchiveConfig, fake_store: FakeStore) -> OrderArchiveHandler:
    return OrderArchiveHandler(config, store_factory=fake_store.factory)


@pytest.fixture
def log_records() -> Iterator[list[dict[str, Any]]]:
    """Parsed JSON log lines emitted on the `order_archive` logger during the test."""
    records: list[dict[str, Any]] = []

    class _Collect(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            records.append(json.loads(record.getMessage()))

    collector = _Collect(level=logging.DEBUG)
    logger = logging.getLogger("order_archive")
    logger.addHandler(collector)
    try:
        yield records
    finally:
        logger.removeHandler(collector)
