"""
providers — ModuleAudit's I/O collaborators.

Public API:
    InfoFileInventory  : Discovers modules from .info.yml files.
    StaticInventory    : In-memory inventory.
    HttpAdvisoryFeed   : Advisory feed over HTTP.
    FileAdvisoryFeed   : Advisory feed from a local JSON file.
    StaticAdvisoryFeed : In-memory advisory feed.
    read_lock_manifest : composer.lock → managed module names (or None).
    ProjectScopeStore  : Persisted "current project id".
"""

from .advisory_feed import FileAdvisoryFeed, HttpAdvisoryFeed, StaticAdvisoryFeed, parse_advisories
from .discovery import InfoFileInventory, StaticInventory, load_enabled_modules
from .lock_manifest import read_lock_manifest
from .project_scope import ProjectScopeStore, resolve_project_id

__all__ = [
    "FileAdvisoryFeed",
    "HttpAdvisoryFeed",
    "InfoFileInventory",
    "ProjectScopeStore",
    "StaticAdvisoryFeed",
    "StaticInventory",
    "load_enabled_modules",
    "parse_advisories",
    "read_lock_manifest",
    "resolve_project_id",
]
