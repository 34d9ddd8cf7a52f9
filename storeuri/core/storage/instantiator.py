"""Build objects from a configuration dict by matching constructor parameter names."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_NAMED_KINDS = (inspect.Parameter.POSITIONAL_OR_KEYWORD, inspect.Parameter.KEYWORD_ONLY)


class Instantiator:
    """Instantiate a class with the configuration entries named like its parameters.

    Entries that match no parameter are ignored. Parameters without a matching
    entry are not passed, so the constructor's own default applies (or the
    constructor raises its usual ``TypeError``). ``*args`` and ``**kwargs``
    never receive values.

    Examples:
        >>> class Backend:
        ...     def __init__(self, root, mode="r"):
        ...         self.root, self.mode = root, mode
        >>> backend = Instantiator().instantiate(Backend, {"root": "/data", "adapter": "local"})
        >>> backend.root, backend.mode
        ('/data', 'r')
    """

    def arguments(self, cls: Callable[..., Any], config: Mapping[str, Any]) -> dict[str, Any]:
        """Return the keyword arguments ``instantiate`` would pass to ``cls``."""
        signature = inspect.signature(cls)
        return {
            name: config[name]
            for name, parameter in signature.parameters.items()
            if parameter.kind in _NAMED_KINDS and name in config
        }

    def instantiate(self, cls: Callable[..., T], config: Mapping[str, Any]) -> T:
        kwargs = self.arguments(cls, config)
        name = getattr(cls, "__qualname__", repr(cls))
        logger.debug(f"Instantiating {name} with parameters: {sorted(kwargs)}")
        return cls(**kwargs)
