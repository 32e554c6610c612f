"""
providers/discovery.py

Inventory providers.

InfoFileInventory walks a Drupal project tree and turns every module
`<name>.info.yml` file it finds into an InstalledPackage:

    web/modules/contrib/token/token.info.yml
        name: Token
        type: module
        version: 8.x-1.7
        project: token

        → InstalledPackage(name="token", declared_version="8.x-1.7",
                           source_class=THIRD_PARTY, project="token",
                           path="web/modules/contrib/token")

Only files under a `modules/` directory are considered. Packages under the
contrib prefix are THIRD_PARTY; everything else (custom modules, core) is
FIRST_PARTY.

The enabled state is not stored in the info files. When an exported
`core.extension.yml` is supplied, its `module:` mapping lists the enabled
modules; without one the enabled state is unknown (None) and the auditor
skips the unused-package check.
"""

import logging
import os
from typing import FrozenSet, Iterable, List, Optional, Sequence

import yaml

from compliance_engine.base import InventoryProvider
from compliance_engine.errors import InventoryError
from compliance_engine.inventory import (
    DEFAULT_CONTRIB_PREFIX,
    InstalledPackage,
    classify_source,
)

logger = logging.getLogger(__name__)

INFO_SUFFIX = ".info.yml"

# views_export ships an obsolete info file that is not a real module.
DEFAULT_EXCLUDED = frozenset({"views_export"})

_SKIPPED_DIRS = frozenset({".git", "node_modules", "vendor", "tests"})


def _load_yaml(path: str):
    try:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f)
    except OSError as exc:
        raise InventoryError(f"cannot read {path}: {exc}", path=path) from exc
    except yaml.YAMLError as exc:
        raise InventoryError(f"invalid YAML in {path}: {exc}", path=path) from exc


def load_enabled_modules(extension_config: str) -> FrozenSet[str]:
    """
    Read the enabled module names from an exported core.extension.yml.

    Raises:
        InventoryError : the file is missing, unreadable or has no `module` mapping.
    """
    data = _load_yaml(extension_config)
    modules = data.get("module") if isinstance(data, dict) else None
    if not isinstance(modules, dict):
        raise InventoryError(
            f"{extension_config} has no 'module' mapping", path=extension_config
        )
    return frozenset(str(name) for name in modules)


class InfoFileInventory(InventoryProvider):
    """
    Discovers modules from `.info.yml` files below `root`.

    Args:
        root             : Project root (the Drupal docroot or its parent).
        contrib_prefix   : Path prefix of third-party packages.
        extension_config : Optional path to an exported core.extension.yml.
        excluded         : Module names never reported.
    """

    def __init__(
        self,
        root: str,
        contrib_prefix: str = DEFAULT_CONTRIB_PREFIX,
        extension_config: Optional[str] = None,
        excluded: Iterable[str] = DEFAULT_EXCLUDED,
    ) -> None:
        self._root = root
        self._contrib_prefix = contrib_prefix
        self._extension_config = extension_config
        self._excluded = frozenset(excluded)

    @property
    def name(self) -> str:
        return "InfoFileInventory"

    def list_packages(self) -> List[InstalledPackage]:
        if not os.path.isdir(self._root):
            raise InventoryError(f"project root {self._root} is not a directory", path=self._root)

        enabled = None
        if self._extension_config:
            enabled = load_enabled_modules(self._extension_config)

        packages = []
        for info_path in self._info_files():
            package = self._read_package(info_path, enabled)
            if package is not None:
                packages.append(package)

        logger.debug("Discovered %d modules under %s", len(packages), self._root)
        return packages

    # ── Private helpers ───────────────────────────────────────────────────────

    def _info_files(self) -> List[str]:
        found = []

        def _on_error(exc: OSError) -> None:
            raise InventoryError(f"cannot walk {exc.filename}: {exc}", path=exc.filename or "")

        for dirpath, dirnames, filenames in os.walk(self._root, onerror=_on_error):
            dirnames[:] = sorted(d for d in dirnames if d not in _SKIPPED_DIRS)
            for filename in sorted(filenames):
                if filename.endswith(INFO_SUFFIX):
                    found.append(os.path.join(dirpath, filename))
        return found

    def _read_package(
        self, info_path: str, enabled: Optional[FrozenSet[str]]
    ) -> Optional[InstalledPackage]:
        rel_dir = os.path.relpath(os.path.dirname(info_path), self._root).replace(os.sep, "/")
        if "modules/" not in rel_dir + "/":
            return None

        name = os.path.basename(info_path)[: -len(INFO_SUFFIX)]
        if name in self._excluded:
            return None

        info = _load_yaml(info_path)
        if not isinstance(info, dict):
            raise InventoryError(f"{info_path} is not a mapping", path=info_path)
        if info.get("type", "module") != "module":
            return None

        version = info.get("version")
        project = info.get("project")
        return InstalledPackage(
            name=name,
            declared_version=None if version is None else str(version),
            source_class=classify_source(rel_dir, self._contrib_prefix),
            enabled=None if enabled is None else name in enabled,
            path=rel_dir,
            project=None if project is None else str(project),
        )


class StaticInventory(InventoryProvider):
    """Serves a fixed list of packages."""

    def __init__(self, packages: Sequence[InstalledPackage]) -> None:
        self._packages = list(packages)

    @property
    def name(self) -> str:
        return "StaticInventory"

    def list_packages(self) -> List[InstalledPackage]:
        return list(self._packages)
