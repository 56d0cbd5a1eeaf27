"""
Order archive handler.

Per invocation: decode -> validate -> (write | reject) -> log -> acknowledge.

Outcome contract:
- archived: one document written, completion `(None, "Success")`
- rejected: payload invalid, nothing written, completion `(None, "Order Invalid: ...")`
  (the platform must not redeliver a permanently bad payload)
- failed:   decode/store error, completion `(error, None)` (the platform decides
  whether to redeliver)

No deduplication: a redelivered event is archived again as a new document.
"""

from __future__ import annotations

import asyncio
import traceback
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping, Optional

from order_archive.config import ArchiveConfig
from order_archive.envelope import PubSubEvent, decode_event_data, from_background
from order_archive.errors import exc_code
from order_archive.logging import log, set_service_name
from order_archive.schema import validate_order_async
from order_archive.store import StoreFactory, firestore_store_factory, open_store

SUCCESS_MESSAGE = "Success"
INVALID_MESSAGE = "Order Invalid"

Callback = Callable[[Optional[BaseException], Optional[str]], Any]


class OutcomeStatus(str, Enum):
    ARCHIVED = "archived"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ArchiveOutcome:
    status: OutcomeStatus
    event_id: Optional[str]
    message: Optional[str] = None
    error: Optional[BaseException] = None
    document_id: Optional[str] = None
    violations: tuple[str, ...] = ()

    def completion(self) -> tuple[Optional[BaseException], Optional[str]]:
        if self.error is not None:
            return self.error, None
        return None, self.message


class OrderArchiveHandler:
    def __init__(self, config: ArchiveConfig, *, store_factory: Optional[StoreFactory] = None) -> None:
        self._config = config
        self._store_factory = store_factory or firestore_store_factory(config)

    @classmethod
    def from_env(cls) -> "OrderArchiveHandler":
        """
        Resolve config from the environment (once per process) and build a handler.
        """
        config = ArchiveConfig.from_env()
        set_service_name(config.service_name)
        log(
            "startup",
            severity="INFO",
            project_id=config.project_id,
            firestore_database=config.database,
            collection=config.collection_name,
        )
        return cls(config)

    @property
    def config(self) -> ArchiveConfig:
        return self._config

    def _write(self, payload: Mapping[str, Any]) -> str:
        # Runs in a worker thread; the store never outlives this call.
        with open_store(self._store_factory) as store:
            return store.add(self._config.collection_name, payload)

    async def handle(self, message: Any, context: Any) -> ArchiveOutcome:
        """
        Background-function shape: `message` is the Pub/Sub message, `context`
        carries the event id.
        """
        return await self.handle_event(from_background(message, context))

    async def handle_event(self, event: PubSubEvent) -> ArchiveOutcome:
        event_id = event.event_id
        try:
            payload = decode_event_data(event.message)

            validation = await validate_order_async(payload)
            if not validation.ok:
                description = validation.describe()
                log(
                    "order_archive.rejected",
                    severity="WARNING",
                    message="order_archive data invalid",
                    eventId=event_id,
                    subscription=event.subscription,
                    attributes=event.attributes,
                    violations=list(validation.violations),
                    payload=payload,
                )
                return ArchiveOutcome(
                    status=OutcomeStatus.REJECTED,
                    event_id=event_id,
                    message=f"{INVALID_MESSAGE}: {description}",
                    violations=validation.violations,
                )

            document_id = await asyncio.to_thread(self._write, payload)
        except Exception as e:
            log(
                "order_archive.error",
                severity="ERROR",
                message=f"order_archive error: {str(e) or 'Unknown error'}",
                eventId=event_id,
                subscription=event.subscription,
                attributes=event.attributes,
                errorType=e.__class__.__name__,
                errorCode=exc_code(e) or None,
                stack=traceback.format_exc()[-8000:],
            )
            return ArchiveOutcome(status=OutcomeStatus.FAILED, event_id=event_id, error=e)

        log(
            "order_archive.success",
            severity="INFO",
            message="order_archive success",
            eventId=event_id,
            subscription=event.subscription,
            attributes=event.attributes,
            collection=self._config.collection_name,
            documentId=document_id,
        )
        return ArchiveOutcome(
            status=OutcomeStatus.ARCHIVED,
            event_id=event_id,
            message=SUCCESS_MESSAGE,
            document_id=document_id,
        )

    async def run(self, message: Any, context: Any, callback: Callback) -> ArchiveOutcome:
        """
        Handle one event and signal completion through `callback(error, message)`.
        """
        outcome = await self.handle(message, context)
        error, text = outcome.completion()
        callback(error, text)
        return outcome
