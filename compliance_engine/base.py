"""
compliance_engine/base.py

Collaborator contracts for ModuleAudit.

Architecture Note:
    The compliance checks are pure functions over snapshots. Everything that
    touches the outside world (walking the project tree, fetching the advisory
    feed, writing the report) sits behind one of the abstract strategies
    below. The ComplianceAuditor in auditor.py receives concrete
    implementations at construction time, so tests hand it in-memory doubles
    and the CLI hands it the disk/HTTP providers from the `providers` package.
"""

from abc import ABC, abstractmethod
from typing import Mapping, Sequence

from .advisories import AdvisoryRecord
from .findings import Finding
from .inventory import InstalledPackage


class InventoryProvider(ABC):
    """Produces the list of packages installed in the project."""

    @abstractmethod
    def list_packages(self) -> Sequence[InstalledPackage]:
        """
        Enumerate installed packages in a stable order.

        Raises:
            InventoryError : the packages could not be enumerated.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable identifier used in log lines."""
        ...


class AdvisoryProvider(ABC):
    """Produces the current security advisory feed, keyed by package name."""

    @abstractmethod
    def fetch(self) -> Mapping[str, AdvisoryRecord]:
        """
        Return the advisories for packages with known issues.

        Raises:
            AdvisoryFetchError : the feed could not be fetched or decoded.
                                 Never signalled by returning an empty mapping.
        """
        ...

    @property
    @abstractmethod
    def name(self) -> str:
        ...


class ReportSink(ABC):
    """Receives the findings of a completed evaluation."""

    @abstractmethod
    def emit(self, findings: Sequence[Finding]) -> None:
        ...
