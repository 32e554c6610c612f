"""
compliance_engine/findings.py

Finding types produced by the compliance checks.

Each finding is an immutable value object with a `kind`, the logging level it
is reported at, and a human-readable `message`. Findings carry no ranking
beyond their kind; reports keep them in inventory order.
"""

import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import ClassVar, Optional


class FindingKind(Enum):
    UNAUTHORIZED = "unauthorized"
    OUTDATED = "outdated"
    UNKNOWN_VERSION = "unknown_version"
    SECURITY_ADVISORY = "security_advisory"
    UNUSED = "unused"


@dataclass(frozen=True)
class Finding:
    name: str

    kind: ClassVar[FindingKind]
    level: ClassVar[int] = logging.WARNING

    @property
    def message(self) -> str:
        return f"Module {self.name}: {self.kind.value.replace('_', ' ')}"

    def to_dict(self) -> dict:
        data = asdict(self)
        data["kind"] = self.kind.value
        return data


@dataclass(frozen=True)
class UnauthorizedPackage(Finding):
    kind: ClassVar[FindingKind] = FindingKind.UNAUTHORIZED
    level: ClassVar[int] = logging.ERROR

    @property
    def message(self) -> str:
        return f"The use of the module {self.name} is not authorised by the QA team."


@dataclass(frozen=True)
class OutdatedPackage(Finding):
    installed_version: str
    required_minimum_version: str

    kind: ClassVar[FindingKind] = FindingKind.OUTDATED

    @property
    def message(self) -> str:
        return (
            f"The module {self.name} needs to be updated from "
            f"{self.installed_version} to {self.required_minimum_version}"
        )


@dataclass(frozen=True)
class UnknownVersion(Finding):
    """The installed or the required version could not be interpreted."""
    installed_version: Optional[str]
    required_minimum_version: Optional[str]

    kind: ClassVar[FindingKind] = FindingKind.UNKNOWN_VERSION

    @property
    def message(self) -> str:
        return (
            f"The module {self.name} has a version that cannot be compared "
            f"(installed: {self.installed_version or 'none'}, "
            f"minimum: {self.required_minimum_version or 'none'})"
        )


@dataclass(frozen=True)
class SecurityAdvisory(Finding):
    installed_version: Optional[str]
    recommended_version: Optional[str]

    kind: ClassVar[FindingKind] = FindingKind.SECURITY_ADVISORY
    level: ClassVar[int] = logging.ERROR

    @property
    def message(self) -> str:
        return (
            f"The module {self.name} with version {self.installed_version or 'unknown'} "
            f"has a security update! Update to {self.recommended_version or 'the latest release'}"
        )


@dataclass(frozen=True)
class UnusedPackage(Finding):
    kind: ClassVar[FindingKind] = FindingKind.UNUSED

    @property
    def message(self) -> str:
        return f"Module {self.name} is not enabled."
