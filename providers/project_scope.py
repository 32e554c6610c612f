"""
providers/project_scope.py

ProjectScopeStore — remembers the "current project id" between CLI runs.

Only the CLI consults this store, and only when no project id is given on
the command line. The compliance core always receives the project id as an
explicit argument.
"""

import json
import logging
import os
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_SCOPE_FILE = ".moduleaudit.json"
_KEY = "project_id"


class ProjectScopeStore:
    """JSON file holding `{"project_id": "<id>"}`."""

    def __init__(self, path: str = DEFAULT_SCOPE_FILE) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def _read(self) -> dict:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable scope file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def get(self) -> Optional[str]:
        value = self._read().get(_KEY)
        return None if value in (None, "") else str(value)

    def set(self, project_id: str) -> None:
        data = self._read()
        data[_KEY] = str(project_id)
        with open(self._path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        logger.info("Current project id set to %s (%s)", project_id, self._path)

    def clear(self) -> None:
        data = self._read()
        if _KEY not in data:
            return
        del data[_KEY]
        if data:
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        else:
            os.remove(self._path)
        logger.info("Current project id cleared (%s)", self._path)


def resolve_project_id(explicit: Optional[str], store: Optional[ProjectScopeStore]) -> Optional[str]:
    """An explicit id always wins; the store is only a fallback."""
    if explicit:
        return explicit
    if store is None:
        return None
    return store.get()
