"""
compliance_engine/inventory.py

Read-only view over the packages an inventory provider discovered.

The core never walks the filesystem itself. Providers (providers/discovery.py)
produce InstalledPackage records; PackageInventory wraps them and answers the
one question every policy check asks: "which packages are governed third-party
code?".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Iterator, List, Optional

DEFAULT_CONTRIB_PREFIX = "modules/contrib"


class SourceClass(Enum):
    FIRST_PARTY = "first_party"
    THIRD_PARTY = "third_party"


@dataclass(frozen=True)
class InstalledPackage:
    """
    One package found in the project tree.

    Attributes:
        name             : Machine name of the package.
        declared_version : Version from the package metadata. Empty or None
                           for packages checked out from source.
        source_class     : FIRST_PARTY (custom/core) or THIRD_PARTY (contrib).
        enabled          : Whether the package is currently active. None when
                           the provider cannot tell.
        path             : Directory of the package, relative to the project root.
        project          : Project the package belongs to. Submodules shipped
                           inside a contrib project carry the parent's name.
    """
    name: str
    declared_version: Optional[str] = None
    source_class: SourceClass = SourceClass.THIRD_PARTY
    enabled: Optional[bool] = True
    path: str = ""
    project: Optional[str] = None

    @property
    def has_declared_version(self) -> bool:
        return bool(self.declared_version and str(self.declared_version).strip())

    @property
    def is_project_root(self) -> bool:
        return self.project is None or self.project == self.name

    @property
    def is_governed(self) -> bool:
        """
        True for packages the policy applies to: third-party, versioned, and
        the root of their own project.
        """
        return (
            self.source_class is SourceClass.THIRD_PARTY
            and self.has_declared_version
            and self.is_project_root
        )


def _normalise_path(path: str) -> str:
    return path.replace("\\", "/").strip("/") + "/"


def is_under_prefix(path: str, prefix: str) -> bool:
    """True when `prefix` appears as a directory run inside `path`."""
    needle = _normalise_path(prefix)
    haystack = "/" + _normalise_path(path)
    return ("/" + needle) in haystack


def classify_source(path: str, contrib_prefix: str = DEFAULT_CONTRIB_PREFIX) -> SourceClass:
    if is_under_prefix(path, contrib_prefix):
        return SourceClass.THIRD_PARTY
    return SourceClass.FIRST_PARTY


class PackageInventory:
    """Ordered, immutable collection of InstalledPackage records."""

    def __init__(self, packages: Iterable[InstalledPackage] = ()) -> None:
        self._packages = tuple(packages)

    def __iter__(self) -> Iterator[InstalledPackage]:
        return iter(self._packages)

    def __len__(self) -> int:
        return len(self._packages)

    def __repr__(self) -> str:
        return f"PackageInventory({len(self._packages)} packages)"

    def third_party(self) -> List[InstalledPackage]:
        return [
            package for package in self._packages
            if package.source_class is SourceClass.THIRD_PARTY
        ]
