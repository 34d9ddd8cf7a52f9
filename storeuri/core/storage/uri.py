"""Storage URI parsing.

A storage URI selects an adapter with its scheme and carries the adapter
configuration in its other parts::

    local:///var/data            -> {"adapter": "local", "root": "/var/data", "prefix": "/var/data"}
    s3://minio:9000/reports?bucket=jq
                                 -> {"adapter": "s3", "endpoint": "minio", "port": 9000,
                                     "root": "/reports", "prefix": "/reports", "bucket": "jq"}

Query parameters become configuration entries. Keys written in bracket
notation build nested configurations, e.g.
``replicate:///?source[adapter]=memory&replica[adapter]=null``.
"""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import parse_qsl, unquote, urlsplit

from storeuri.core.storage.errors import InvalidUriError

HOST_PLACEHOLDER = "__HOST_PLACEHOLDER__"

_EMPTY_AUTHORITY = ":///"
_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")


def parse_query(query: str) -> dict[str, Any]:
    """Parse a query string with form semantics into a configuration dict.

    Blank values are kept and the last occurrence of a key wins, except for
    keys ending in ``[]`` whose values are collected in a list.

    Examples:
        >>> parse_query("bucket=data&secure=false")
        {'bucket': 'data', 'secure': 'false'}
        >>> parse_query("source[adapter]=memory")
        {'source': {'adapter': 'memory'}}
        >>> parse_query("tags[]=a&tags[]=b")
        {'tags': ['a', 'b']}
    """
    config: dict[str, Any] = {}

    for key, value in parse_qsl(query, keep_blank_values=True):
        match = _BRACKET_KEY.match(key)
        if not match:
            config[key] = value
            continue

        path = [match.group(1)] + re.findall(r"\[([^\[\]]*)\]", match.group(2))
        _insert(config, path, value)

    return config


def _insert(target: dict[str, Any] | list[Any], path: list[str], value: str) -> None:
    """Store ``value`` under a bracket key path; an empty segment appends to a list."""
    head, rest = path[0], path[1:]
    if not rest:
        if isinstance(target, list):
            target.append(value)
        else:
            target[head] = value
        return

    kind = list if rest[0] == "" else dict
    if isinstance(target, list):
        child = kind()
        target.append(child)
    else:
        child = target.get(head)
        if not isinstance(child, kind):
            child = target[head] = kind()
    _insert(child, rest, value)


def _split_authority(netloc: str) -> tuple[str | None, str | None, str]:
    """Split ``user:password@host:port`` into (username, password, hostport)."""
    userinfo, sep, hostport = netloc.rpartition("@")
    if not sep:
        return None, None, netloc

    username, has_password, password = userinfo.partition(":")
    return unquote(username), unquote(password) if has_password else None, hostport


def _extract_host(hostport: str) -> str:
    """Return the host part of ``host:port`` with its original case."""
    if hostport.startswith("["):
        return hostport[1 : hostport.index("]")]
    return hostport.partition(":")[0]


def parse_uri(uri: str) -> dict[str, Any]:
    """Parse a storage URI into an adapter configuration.

    Args:
        uri: URI such as ``s3://host/path?bucket=name`` or ``local:///path``

    Returns:
        Configuration dict with ``adapter`` set from the scheme, ``endpoint`` from
        the host, ``root``/``prefix`` from the path and the query entries

    Raises:
        InvalidUriError: If the URI has no scheme or cannot be decomposed
    """
    candidate = uri
    scheme_end = uri.find(_EMPTY_AUTHORITY)
    if scheme_end > 0 and "/" not in uri[:scheme_end] and "?" not in uri[:scheme_end]:
        # urlsplit drops an empty authority, so mark it with a placeholder host
        candidate = uri.replace(_EMPTY_AUTHORITY, f"://{HOST_PLACEHOLDER}/", 1)

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as e:
        raise InvalidUriError(uri) from e

    if not parts.scheme:
        raise InvalidUriError(uri)

    config = parse_query(parts.query) if parts.query else {}
    # urlsplit lowercases the scheme; adapter names are matched case-sensitively
    config["adapter"] = candidate.partition(":")[0][-len(parts.scheme) :]

    username, password, hostport = _split_authority(parts.netloc)
    host = _extract_host(hostport)
    if host and host != HOST_PLACEHOLDER:
        config["endpoint"] = host
    if port is not None:
        config["port"] = port
    if username:
        config["username"] = username
    if password is not None:
        config["password"] = password

    if parts.path:
        config["root"] = parts.path
        config["prefix"] = parts.path

    return config
