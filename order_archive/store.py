from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Callable, Iterator, Mapping, Protocol

from order_archive.config import ArchiveConfig


class OrderStore(Protocol):
    def add(self, collection: str, document: Mapping[str, Any]) -> str:
        ...

    def close(self) -> None:
        ...


StoreFactory = Callable[[], OrderStore]


class FirestoreOrderStore:
    """
    One Firestore client, used for a single invocation and then closed.
    """

    def __init__(self, *, project_id: str, database: str = "(default)", client: Any = None) -> None:
        if client is None:
            from google.cloud import firestore as firestore_mod

            client = firestore_mod.Client(project=project_id, database=database)
        self._db = client

    def add(self, collection: str, document: Mapping[str, Any]) -> str:
        """
        Insert `document` as a new doc with a Firestore-assigned id; returns the id.
        """
        _update_time, ref = self._db.collection(collection).add(dict(document))
        return str(ref.id)

    def close(self) -> None:
        close = getattr(self._db, "close", None)
        if callable(close):
            close()


def firestore_store_factory(config: ArchiveConfig) -> StoreFactory:
    def _factory() -> OrderStore:
        return FirestoreOrderStore(project_id=config.project_id, database=config.database)

    return _factory


@contextmanager
def open_store(factory: StoreFactory) -> Iterator[OrderStore]:
    """
    Acquire a store for the current invocation; always released on exit.
    """
    store = factory()
    try:
        yield store
    finally:
        store.close()
