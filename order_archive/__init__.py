"""
Pub/Sub -> Firestore order archive.

Decodes base64 JSON order messages, validates their shape, and inserts each
valid order as a new document in a Firestore collection.
"""

from order_archive.config import ArchiveConfig
from order_archive.errors import ConfigError, DecodeError
from order_archive.handler import ArchiveOutcome, OrderArchiveHandler, OutcomeStatus
from order_archive.schema import OrderPayload, OrderValidation, validate_order

__all__ = [
    "ArchiveConfig",
    "ArchiveOutcome",
    "ConfigError",
    "DecodeError",
    "OrderArchiveHandler",
    "OrderPayload",
    "OrderValidation",
    "OutcomeStatus",
    "validate_order",
]
