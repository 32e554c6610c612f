"""
compliance_engine/advisories.py

AdvisoryMatcher — cross-reference third-party packages with the security feed.

This check is orthogonal to authorization: it runs over the full third-party
inventory, authorized or not, versioned or not, project roots and submodules
alike. A package that is both unauthorized and affected by an advisory
produces two findings, one from each check.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Mapping

from .findings import SecurityAdvisory
from .inventory import InstalledPackage, SourceClass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdvisoryRecord:
    """
    A known security issue for one package.

    Attributes:
        package_name        : Package the advisory applies to.
        existing_version    : Version the feed considers installed.
        recommended_version : Version that fixes the issue.
    """
    package_name: str
    existing_version: str = ""
    recommended_version: str = ""


class AdvisoryMatcher:

    def check_advisories(
        self,
        inventory: Iterable[InstalledPackage],
        advisory_feed: Mapping[str, AdvisoryRecord],
    ) -> List[SecurityAdvisory]:
        """
        Emit one SecurityAdvisory per third-party package listed in the feed.

        The reported installed version is the one the feed saw; when the feed
        does not carry it, the package's declared version is used.
        """
        findings: List[SecurityAdvisory] = []

        for package in inventory:
            if package.source_class is not SourceClass.THIRD_PARTY:
                continue
            record = advisory_feed.get(package.name)
            if record is None:
                continue

            findings.append(SecurityAdvisory(
                name=package.name,
                installed_version=record.existing_version or package.declared_version or None,
                recommended_version=record.recommended_version or None,
            ))

        logger.debug("Advisory check produced %d findings", len(findings))
        return findings
