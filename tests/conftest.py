from __future__ import annotations

import pytest

from storeuri.core.storage.availability import StaticAvailability
from storeuri.core.storage.factory import AdapterFactory


@pytest.fixture
def factory():
    """Factory that treats every module as installed."""
    return AdapterFactory(availability=StaticAvailability())


@pytest.fixture
def make_factory():
    """Build a factory that reports the given modules as missing."""

    def _make(*missing: str) -> AdapterFactory:
        return AdapterFactory(availability=StaticAvailability(missing=missing))

    return _make


@pytest.fixture
def clean_env(monkeypatch):
    """Remove storage environment variables for the duration of a test."""
    for key in ("STOREURI_LOCAL_ROOT", "MINIO_ENDPOINT", "MINIO_PORT", "MINIO_SECURE"):
        monkeypatch.delenv(key, raising=False)
    yield
