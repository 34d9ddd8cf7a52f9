"""Built-in named backend configuration.

Used by :class:`~storeuri.core.storage.registry.StorageRegistry` when no
``configs.storage_backends`` module is importable. Entries are adapter
configuration dicts or storage URIs.

Environment overrides:
    export STOREURI_LOCAL_ROOT=/srv/blobs
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def _resolve_local_root() -> str:
    configured = os.environ.get("STOREURI_LOCAL_ROOT")
    if configured:
        return str(Path(configured).expanduser())
    return str(Path(tempfile.gettempdir()) / "storeuri")


CONFIGURATION = {
    "local": {
        "adapter": "local",
        "root": _resolve_local_root(),
    },
    "memory": "memory:///",
    "null": "null:///",
}
