"""
compliance_engine/unused.py

UnusedPackageDetector — disabled contrib packages.

The asymmetry below is intentional and must be kept:

    lock manifest absent   → every disabled package under the prefix is flagged
                             (managed-but-disabled cannot be told apart from
                             abandoned code)
    lock manifest present  → only disabled packages the manifest declares are
                             flagged ("declared as a dependency, yet disabled")

So a missing manifest widens the flagged set instead of narrowing it.

Only packages known to be disabled (`enabled is False`) are candidates. A
package whose enabled state is unknown is never reported as unused; the
auditor skips the whole check when any such package is under the prefix.
"""

import logging
from typing import AbstractSet, Iterable, List, Optional

from .findings import UnusedPackage
from .inventory import DEFAULT_CONTRIB_PREFIX, InstalledPackage, is_under_prefix

logger = logging.getLogger(__name__)


class UnusedPackageDetector:
    """
    Args:
        path_prefix : Only packages located under this path are considered.
    """

    def __init__(self, path_prefix: str = DEFAULT_CONTRIB_PREFIX) -> None:
        self._path_prefix = path_prefix

    @property
    def path_prefix(self) -> str:
        return self._path_prefix

    def undetermined(self, inventory: Iterable[InstalledPackage]) -> List[str]:
        """Names of packages under the prefix whose enabled state is unknown."""
        return [
            package.name for package in inventory
            if package.enabled is None and is_under_prefix(package.path, self._path_prefix)
        ]

    def check_unused(
        self,
        inventory: Iterable[InstalledPackage],
        lock_manifest_names: Optional[AbstractSet[str]] = None,
    ) -> List[UnusedPackage]:
        findings = []
        for package in inventory:
            if package.enabled is not False or not is_under_prefix(package.path, self._path_prefix):
                continue
            if lock_manifest_names is None or package.name in lock_manifest_names:
                findings.append(UnusedPackage(name=package.name))

        logger.debug(
            "Unused check under %s (manifest %s) produced %d findings",
            self._path_prefix,
            "absent" if lock_manifest_names is None else "present",
            len(findings),
        )
        return findings
