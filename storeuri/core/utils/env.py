from __future__ import annotations

import os
from pathlib import Path


def load_env_file_if_present(path: str | Path = ".env", override: bool = False) -> dict[str, str]:
    """Load KEY=VALUE pairs from a .env file into ``os.environ`` if the file exists.

    Blank lines and ``#`` comments are skipped, a leading ``export`` is allowed and
    matching quotes around values are removed. Variables already set in the
    environment win unless ``override`` is true.

    Returns the pairs read from the file.
    """
    env_path = Path(path)
    loaded: dict[str, str] = {}
    if not env_path.is_file():
        return loaded

    for line in env_path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        if line.startswith("export "):
            line = line[len("export ") :]

        key, value = (part.strip() for part in line.split("=", 1))
        if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
            value = value[1:-1]

        if override or key not in os.environ:
            os.environ[key] = value
        loaded[key] = value
    return loaded
