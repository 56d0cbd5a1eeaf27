from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional, Sequence

from order_archive.errors import ConfigError
from order_archive.logging import DEFAULT_SERVICE_NAME, log

PROJECT_ID_ENV = "PROJECTID"
PROJECT_ID_ALIASES = ("GCP_PROJECT", "GOOGLE_CLOUD_PROJECT", "GCLOUD_PROJECT", "PROJECT_ID")
COLLECTION_NAME_ENV = "COLLECTION_NAME"
FIRESTORE_DATABASE_ENV = "FIRESTORE_DATABASE"
SERVICE_NAME_ENVS = ("SERVICE_NAME", "K_SERVICE", "FUNCTION_TARGET")

DEFAULT_DATABASE = "(default)"


def _first_env(env: Mapping[str, str], names: Sequence[str]) -> Optional[str]:
    for name in names:
        v = env.get(name)
        if v is not None and str(v).strip():
            return str(v).strip()
    return None


@dataclass(frozen=True, slots=True)
class ArchiveConfig:
    """
    Process-wide settings, resolved once at startup and passed into the handler.
    """

    project_id: str
    collection_name: str
    database: str = DEFAULT_DATABASE
    service_name: str = DEFAULT_SERVICE_NAME

    def __post_init__(self) -> None:
        if not str(self.project_id or "").strip():
            raise ConfigError("project_id is required")
        name = str(self.collection_name or "").strip()
        if not name:
            raise ConfigError("collection_name is required")
        # Top-level collection ids cannot contain '/'.
        if "/" in name:
            raise ConfigError(f"collection_name must not contain '/': {name!r}")

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "ArchiveConfig":
        """
        Build config from the environment.

        - PROJECTID (falls back to the usual GCP project env names)
        - COLLECTION_NAME
        - FIRESTORE_DATABASE (optional, "(default)")
        """
        e = os.environ if env is None else env

        project_id = _first_env(e, (PROJECT_ID_ENV, *PROJECT_ID_ALIASES))
        collection_name = _first_env(e, (COLLECTION_NAME_ENV,))

        presence = {PROJECT_ID_ENV: bool(project_id), COLLECTION_NAME_ENV: bool(collection_name)}
        missing = [name for name, ok in presence.items() if not ok]
        if missing:
            log("config.env_missing", severity="CRITICAL", missing_env=missing)
            raise ConfigError(f"Missing required env vars: {', '.join(missing)}")

        assert project_id is not None and collection_name is not None
        return cls(
            project_id=project_id,
            collection_name=collection_name,
            database=_first_env(e, (FIRESTORE_DATABASE_ENV,)) or DEFAULT_DATABASE,
            service_name=_first_env(e, SERVICE_NAME_ENVS) or DEFAULT_SERVICE_NAME,
        )
