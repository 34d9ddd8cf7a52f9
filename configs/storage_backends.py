"""Named storage backend configuration for this project.

This module defines the CONFIGURATION dict which maps backend names to an
adapter configuration or a storage URI. When it cannot be imported the
registry falls back to ``storeuri.core.storage.backend_config``.

Example usage:
    from storeuri.core.storage import BlobStorage

    storage = BlobStorage.from_name("dev")

Environment overrides:
    export STOREURI_LOCAL_ROOT=/srv/blobs
    export MINIO_ENDPOINT=minio.internal
    export MINIO_PORT=9000

Configuration inheritance:
    "minio": {"adapter": "s3", "endpoint": "localhost", "bucket": "storeuri"},
    "minio-reports": {
        "__inherits__": "minio",  # Inherits all settings from minio
        "prefix": "reports",      # Override only the prefix
    }
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from storeuri.core.utils.env import load_env_file_if_present

load_env_file_if_present()
PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _resolve_local_root() -> Path:
    """Return the default filesystem storage root."""
    configured_path = os.environ.get("STOREURI_LOCAL_ROOT")
    if configured_path:
        return Path(configured_path).expanduser()

    return PROJECT_ROOT / "var" / "blob_storage"


LOCAL_ROOT = _resolve_local_root()


def _build_minio_config(prefix: str | None = None) -> dict[str, Any]:
    """Return an s3 adapter configuration for the MinIO server."""
    config: dict[str, Any] = {
        "adapter": "s3",
        "endpoint": os.getenv("MINIO_ENDPOINT", "localhost"),
        "port": int(os.getenv("MINIO_PORT", "9000")),
        "access_key": os.getenv("MINIO_ACCESS_KEY", "minioadmin"),
        "secret_key": os.getenv("MINIO_SECRET_KEY", "minioadmin"),
        "bucket": os.getenv("MINIO_BUCKET", "storeuri"),
        "secure": os.getenv("MINIO_SECURE", "false"),
    }
    if prefix:
        config["prefix"] = prefix
    return config


CONFIGURATION = {
    # Development filesystem directory
    "dev": {
        "adapter": "local",
        "root": str(LOCAL_ROOT / "dev"),
    },
    "local": {
        "adapter": "local",
        "root": str(LOCAL_ROOT),
    },
    "minio": _build_minio_config(),
    "minio-reports": {
        "__inherits__": "minio",
        "prefix": "reports",
    },
    # Local copy mirrored to MinIO
    "mirrored": {
        "adapter": "replicate",
        "source": {"adapter": "local", "root": str(LOCAL_ROOT / "mirrored")},
        "replica": _build_minio_config(prefix="mirrored"),
    },
    "memory": "memory:///",
    "tmp": "local:///tmp/storeuri",
}
