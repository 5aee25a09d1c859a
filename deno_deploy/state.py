# poll-state storage for running the trigger outside a workflow host.

# Inside a host the trigger is handed the host's per-node static data and the
# host persists it. Standalone, one of these stores plays that role: load()
# returns a mutable dict the trigger edits in place, save() persists it.
# Keys are one per trigger instance (see DeploymentTrigger.state_key).

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)


class MemoryStateStore:

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def load(self, key: str) -> dict[str, Any]:
        return dict(self._data.get(key, {}))

    def save(self, key: str, static_data: dict[str, Any]) -> None:
        self._data[key] = json.loads(json.dumps(static_data))


class JsonFileStateStore:
    """
    All trigger states in one JSON file: {key: static_data}.

    Writes go to a temp file in the same directory and are renamed over the
    original, so a crash mid-write never leaves a truncated file.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            log.warning("Ignoring unreadable state file %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self, key: str) -> dict[str, Any]:
        entry = self._read_all().get(key)
        return dict(entry) if isinstance(entry, dict) else {}

    def save(self, key: str, static_data: dict[str, Any]) -> None:
        data = self._read_all()
        data[key] = static_data
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
