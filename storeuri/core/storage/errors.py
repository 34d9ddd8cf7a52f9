"""Errors raised while turning a URI or configuration into a storage backend."""

from __future__ import annotations


class StorageFactoryError(Exception):
    """Base exception for adapter factory errors."""

    pass


class InvalidUriError(StorageFactoryError, ValueError):
    """Raised when a URI has no scheme or cannot be split into URI parts."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"URI '{uri}' is invalid and cannot be interpreted as a storage adapter.")


class AdapterNotSupportedError(StorageFactoryError):
    """Raised when an adapter name is unknown or not implemented."""

    def __init__(self, adapter: str):
        self.adapter = adapter
        super().__init__(f"Adapter '{adapter}' is not supported.")


class PackageRequiredError(StorageFactoryError):
    """Raised when the package backing an adapter is not installed."""

    def __init__(self, adapter: str, package: str):
        self.adapter = adapter
        self.package = package
        super().__init__(f"Adapter '{adapter}' requires the package '{package}' to be installed.")


class AdapterConfigError(StorageFactoryError, ValueError):
    """Raised when an adapter configuration is structurally invalid."""

    def __init__(self, adapter: str, message: str):
        self.adapter = adapter
        super().__init__(f"Adapter '{adapter}': {message}")
