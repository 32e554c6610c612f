"""
compliance_engine/engine.py

ComplianceEngine — authorization and minimum-version checks.
────────────────────────────────────────────────────────────
Both checks take an EffectiveAuthorization (already resolved for one project
scope) and the package inventory, and return findings in inventory order.

Only governed packages are inspected (see InstalledPackage.is_governed):
    • first-party code is outside the QA policy,
    • a package without a declared version is a source checkout, not a
      released dependency, and cannot be classified,
    • submodules are governed through the project that ships them.

The engine is stateless and has no side effects.
"""

import logging
from typing import Iterable, List, Union

from .findings import OutdatedPackage, UnauthorizedPackage, UnknownVersion
from .inventory import InstalledPackage
from .policy_store import EffectiveAuthorization
from .version import Ordering, compare

logger = logging.getLogger(__name__)


class ComplianceEngine:

    def check_authorization(
        self,
        authorization: EffectiveAuthorization,
        inventory: Iterable[InstalledPackage],
    ) -> List[UnauthorizedPackage]:
        """Flag every governed package missing from the authorization set."""
        findings = []
        for package in inventory:
            if not package.is_governed:
                continue
            if not authorization.is_authorized(package.name):
                findings.append(UnauthorizedPackage(name=package.name))

        logger.debug("Authorization check produced %d findings", len(findings))
        return findings

    def check_minimum_version(
        self,
        authorization: EffectiveAuthorization,
        inventory: Iterable[InstalledPackage],
    ) -> List[Union[OutdatedPackage, UnknownVersion]]:
        """
        Flag governed packages installed below their minimum accepted version.

        Packages without a declared minimum are never flagged. When either the
        installed or the required version cannot be interpreted, the package
        is reported as UnknownVersion rather than outdated or compliant.
        """
        findings: List[Union[OutdatedPackage, UnknownVersion]] = []

        for package in inventory:
            if not package.is_governed:
                continue
            required = authorization.minimum_version(package.name)
            if not required:
                continue

            result = compare(package.declared_version, required)
            if result.unknown:
                logger.warning(
                    "Cannot compare versions for %s (installed=%r, minimum=%r)",
                    package.name, package.declared_version, required,
                )
                findings.append(UnknownVersion(
                    name=package.name,
                    installed_version=package.declared_version,
                    required_minimum_version=required,
                ))
            elif result.ordering is Ordering.LESS:
                findings.append(OutdatedPackage(
                    name=package.name,
                    installed_version=package.declared_version,
                    required_minimum_version=required,
                ))

        logger.debug("Minimum-version check produced %d findings", len(findings))
        return findings
