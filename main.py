"""
Cloud Functions entrypoints.

Deploy either target against a Pub/Sub topic:
- `order_archive`             background function (event, context)
- `order_archive_cloud_event` CloudEvent function (gen2 / Eventarc)

Config comes from the environment once per process (see `ArchiveConfig.from_env`):
  PROJECTID, COLLECTION_NAME, FIRESTORE_DATABASE (optional)

Failures are re-raised so the platform records a failed execution and applies
its own retry policy; rejected payloads return normally and are not retried.
"""

from __future__ import annotations

import asyncio
import functools
from typing import Any

import functions_framework

from order_archive.envelope import from_push_body
from order_archive.handler import ArchiveOutcome, OrderArchiveHandler


@functools.lru_cache(maxsize=1)
def get_handler() -> OrderArchiveHandler:
    return OrderArchiveHandler.from_env()


def _complete(outcome: ArchiveOutcome) -> str:
    error, message = outcome.completion()
    if error is not None:
        raise error
    return message or ""


def order_archive(event: dict[str, Any], context: Any) -> str:
    """
    Background function triggered by Pub/Sub.

    `event["data"]` is the base64 order JSON; `context.event_id` identifies the delivery.
    """
    outcome = asyncio.run(get_handler().handle(event, context))
    return _complete(outcome)


@functions_framework.cloud_event
def order_archive_cloud_event(cloud_event: Any) -> str:
    event = from_push_body(cloud_event.data, event_id=cloud_event["id"])
    outcome = asyncio.run(get_handler().handle_event(event))
    return _complete(outcome)
