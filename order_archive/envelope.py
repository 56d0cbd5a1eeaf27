"""
Pub/Sub envelope decoding.

Three delivery shapes reach this service, all reduced to (data, event id):

- background function:  event={"data": "<b64>", "attributes": {...}}, context.event_id
- CloudEvent (gen2):     cloud_event.data={"message": {...}, "subscription": ...}, cloud_event["id"]
- push (Cloud Run):      body={"message": {"data", "messageId", ...}, "subscription": ...}
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from order_archive.errors import DecodeError


@dataclass(frozen=True, slots=True)
class PubSubEvent:
    """One inbound delivery, normalized."""

    event_id: Optional[str]
    message: Optional[Mapping[str, Any]]
    subscription: Optional[str] = None
    attributes: dict[str, str] = field(default_factory=dict)


def _clean_str(v: Any) -> Optional[str]:
    if v is None:
        return None
    s = str(v).strip()
    return s or None


def _attributes(message: Any) -> dict[str, str]:
    raw = message.get("attributes") if isinstance(message, Mapping) else None
    out: dict[str, str] = {}
    if isinstance(raw, Mapping):
        for k, v in raw.items():
            if k is None:
                continue
            out[str(k)] = "" if v is None else str(v)
    return out


def event_id_from_context(context: Any) -> Optional[str]:
    """
    Event id from the invocation context.

    Python background functions pass an object with `event_id`; the Node-style
    runtime (and our tests) may pass a mapping with `eventId` / `event_id`.
    """
    if context is None:
        return None
    if isinstance(context, Mapping):
        return _clean_str(context.get("eventId") or context.get("event_id"))
    return _clean_str(getattr(context, "event_id", None) or getattr(context, "eventId", None))


def from_background(event: Any, context: Any) -> PubSubEvent:
    message = event if isinstance(event, Mapping) else None
    return PubSubEvent(
        event_id=event_id_from_context(context),
        message=message,
        attributes=_attributes(message),
    )


def from_push_body(body: Any, *, event_id: Optional[str] = None) -> PubSubEvent:
    """
    Normalize a push body (also the CloudEvent `data` of a Pub/Sub trigger).

    Only the envelope structure is read here; `data` is decoded later, so a
    missing message surfaces as a DecodeError from `decode_event_data`.
    """
    body_map = body if isinstance(body, Mapping) else {}
    message = body_map.get("message")
    if not isinstance(message, Mapping):
        message = None

    mid = None
    if message is not None:
        mid = _clean_str(message.get("messageId") or message.get("message_id"))

    return PubSubEvent(
        event_id=_clean_str(event_id) or mid,
        message=message,
        subscription=_clean_str(body_map.get("subscription")),
        attributes=_attributes(message),
    )


def _reject_non_json_constant(token: str) -> Any:
    # json.loads accepts NaN/Infinity/-Infinity; they are not JSON.
    raise ValueError(f"non-JSON constant {token!r}")


def decode_event_data(message: Any) -> Any:
    """
    Decode `message["data"]` (base64 of UTF-8 JSON text) into a JSON value.

    Any JSON value is returned as-is; deciding whether it is an order is the
    validator's job.
    """
    if not isinstance(message, Mapping):
        raise DecodeError("missing_message")

    data = message.get("data")
    if isinstance(data, (bytes, bytearray)):
        try:
            data = bytes(data).decode("ascii")
        except UnicodeDecodeError as e:
            raise DecodeError(f"invalid_base64: {e}") from e
    if not isinstance(data, str) or not data.strip():
        raise DecodeError("missing_data")

    try:
        raw = base64.b64decode(data.strip(), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError(f"invalid_base64: {e}") from e

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"invalid_utf8: {e}") from e

    try:
        return json.loads(text, parse_constant=_reject_non_json_constant)
    except ValueError as e:
        # JSONDecodeError, or a NaN/Infinity token.
        raise DecodeError(f"invalid_payload_json: {e}") from e
