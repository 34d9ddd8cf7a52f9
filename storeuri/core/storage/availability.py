"""Checks for the optional packages that back individual adapter kinds."""

from __future__ import annotations

import importlib.util
from abc import ABC, abstractmethod
from collections.abc import Iterable


class AvailabilityChecker(ABC):
    """Reports whether a module needed by an adapter can be imported."""

    @abstractmethod
    def is_available(self, module: str) -> bool:
        """Return True if ``module`` is present in the running interpreter."""
        pass


class ImportAvailability(AvailabilityChecker):
    """Locate modules with ``importlib`` without importing them.

    For a dotted name such as ``azure.storage.blob`` the parent packages are
    imported by the lookup, the target module itself is not.
    """

    def is_available(self, module: str) -> bool:
        try:
            return importlib.util.find_spec(module) is not None
        except (ImportError, ValueError):
            # Missing parent package, or a module whose __spec__ is None
            return False


class StaticAvailability(AvailabilityChecker):
    """Availability driven by an explicit set of missing modules.

    Examples:
        >>> checker = StaticAvailability(missing=["minio"])
        >>> checker.is_available("minio"), checker.is_available("paramiko")
        (False, True)
    """

    def __init__(self, missing: Iterable[str] = ()):
        self._missing = frozenset(missing)

    def is_available(self, module: str) -> bool:
        return module not in self._missing
