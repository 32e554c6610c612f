"""
compliance_engine/auditor.py

ComplianceAuditor — one evaluation run from snapshot to report.
────────────────────────────────────────────────────────────────
The auditor wires the collaborators to the pure checks:

  1. Gather every snapshot the requested checks need (policy, inventory,
     advisory feed). Any collaborator failure raises here, before a single
     finding exists.
  2. Resolve the effective authorization for the explicit project id.
  3. Run the checks. They share no state and do not depend on each other's
     output.
  4. Order the findings by inventory position and hand the complete list to
     the report sink in one call.

A check whose collaborator is missing (no advisory feed) or whose input is
unknown (enabled state not provided) is skipped and recorded; such a report
is never compliant.

Because findings are only emitted after every step has succeeded, a failed
run reports nothing rather than a partial (and falsely reassuring) result.

The auditor never changes the environment it inspects: no package is enabled
or disabled, and the project id is a parameter, never ambient state.
"""

import logging
from dataclasses import dataclass, field
from typing import AbstractSet, Dict, List, Optional

from .advisories import AdvisoryMatcher
from .base import AdvisoryProvider, InventoryProvider, ReportSink
from .engine import ComplianceEngine
from .findings import Finding, FindingKind
from .inventory import DEFAULT_CONTRIB_PREFIX, PackageInventory
from .policy_store import EffectiveAuthorization, PolicyStore, resolve_effective
from .unused import UnusedPackageDetector

logger = logging.getLogger(__name__)

CHECK_AUTHORIZATION = "authorization"
CHECK_MINIMUM_VERSION = "minimum_version"
CHECK_ADVISORIES = "advisories"
CHECK_UNUSED = "unused"


@dataclass
class AuditReport:
    """
    Outcome of one evaluation run.

    Attributes:
        project_id     : Project scope the policy was resolved for (None = global only).
        findings       : All findings in inventory order. Findings for the same
                         package follow the check run order.
        checks_run     : Names of the checks that ran.
        checks_skipped : Checks that could not run because their collaborator
                         is not configured or their input is unknown.
    """
    project_id: Optional[str] = None
    findings: List[Finding] = field(default_factory=list)
    checks_run: List[str] = field(default_factory=list)
    checks_skipped: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.checks_skipped

    @property
    def is_compliant(self) -> bool:
        """A run that skipped a check never counts as compliant."""
        return self.is_complete and not self.findings

    def by_kind(self) -> Dict[FindingKind, List[Finding]]:
        grouped: Dict[FindingKind, List[Finding]] = {}
        for finding in self.findings:
            grouped.setdefault(finding.kind, []).append(finding)
        return grouped

    def to_dict(self) -> dict:
        return {
            "project_id": self.project_id,
            "compliant": self.is_compliant,
            "complete": self.is_complete,
            "checks_run": list(self.checks_run),
            "checks_skipped": list(self.checks_skipped),
            "findings": [finding.to_dict() for finding in self.findings],
        }


class ComplianceAuditor:
    """
    Orchestrates the compliance checks for one project tree.

    Args:
        policy_store       : Source of the policy feed.
        inventory_provider : Source of the installed packages.
        advisory_provider  : Source of the security advisories. When None, the
                             advisory check is skipped and recorded as such.
        sink               : Receives the findings of successful runs.
        contrib_prefix     : Path prefix of third-party packages, used by the
                             unused-package check.

    Usage:
        auditor = ComplianceAuditor(
            policy_store=PolicyStore(),
            inventory_provider=InfoFileInventory("/var/www/html"),
            advisory_provider=HttpAdvisoryFeed("https://…/advisories.json"),
            sink=LoggingReportSink(),
        )
        report = auditor.audit_authorized_security(project_id="12")
        if not report.is_compliant:
            ...
    """

    def __init__(
        self,
        policy_store: PolicyStore,
        inventory_provider: InventoryProvider,
        advisory_provider: Optional[AdvisoryProvider] = None,
        sink: Optional[ReportSink] = None,
        contrib_prefix: str = DEFAULT_CONTRIB_PREFIX,
    ) -> None:
        self._policy_store = policy_store
        self._inventory_provider = inventory_provider
        self._advisory_provider = advisory_provider
        self._sink = sink
        self._engine = ComplianceEngine()
        self._matcher = AdvisoryMatcher()
        self._unused = UnusedPackageDetector(path_prefix=contrib_prefix)

        logger.debug(
            "ComplianceAuditor initialised | policy=%s | inventory=%s | advisories=%s",
            policy_store.url,
            inventory_provider.name,
            advisory_provider.name if advisory_provider else "none",
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def audit_authorized_security(self, project_id: Optional[str] = None) -> AuditReport:
        """Authorization check plus security advisories."""
        return self._run(
            project_id,
            checks=(CHECK_AUTHORIZATION, CHECK_ADVISORIES),
        )

    def audit_minimum_version(self, project_id: Optional[str] = None) -> AuditReport:
        return self._run(project_id, checks=(CHECK_MINIMUM_VERSION,))

    def audit_unused(self, lock_manifest_names: Optional[AbstractSet[str]] = None) -> AuditReport:
        """
        Disabled contrib packages. `lock_manifest_names` is None when the
        lock manifest is missing, which flags every disabled package.
        """
        return self._run(
            None,
            checks=(CHECK_UNUSED,),
            lock_manifest_names=lock_manifest_names,
        )

    def audit_all(
        self,
        project_id: Optional[str] = None,
        lock_manifest_names: Optional[AbstractSet[str]] = None,
    ) -> AuditReport:
        return self._run(
            project_id,
            checks=(CHECK_AUTHORIZATION, CHECK_MINIMUM_VERSION, CHECK_ADVISORIES, CHECK_UNUSED),
            lock_manifest_names=lock_manifest_names,
        )

    # ── Private helpers ───────────────────────────────────────────────────────

    def _run(
        self,
        project_id: Optional[str],
        checks,
        lock_manifest_names: Optional[AbstractSet[str]] = None,
    ) -> AuditReport:
        report = AuditReport(project_id=project_id)
        needs_policy = CHECK_AUTHORIZATION in checks or CHECK_MINIMUM_VERSION in checks

        # ── Step 1: snapshots (may raise) ─────────────────────────────────────
        authorization: Optional[EffectiveAuthorization] = None
        if needs_policy:
            authorization = resolve_effective(self._policy_store.load(), project_id)

        inventory = PackageInventory(self._inventory_provider.list_packages())
        logger.info(
            "[%s] %d packages discovered (%d third-party)",
            self._inventory_provider.name, len(inventory), len(inventory.third_party()),
        )

        advisory_feed = None
        if CHECK_ADVISORIES in checks:
            if self._advisory_provider is None:
                logger.warning("No advisory feed configured; security advisory check skipped.")
                report.checks_skipped.append(CHECK_ADVISORIES)
            else:
                advisory_feed = self._advisory_provider.fetch()
                logger.info(
                    "[%s] %d advisories received", self._advisory_provider.name, len(advisory_feed)
                )

        run_unused = CHECK_UNUSED in checks
        if run_unused:
            undetermined = self._unused.undetermined(inventory)
            if undetermined:
                logger.warning(
                    "Enabled state unknown for %d modules in %s; unused module check skipped.",
                    len(undetermined), self._unused.path_prefix,
                )
                report.checks_skipped.append(CHECK_UNUSED)
                run_unused = False

        # ── Step 2: checks (pure) ─────────────────────────────────────────────
        if CHECK_AUTHORIZATION in checks:
            report.findings.extend(self._engine.check_authorization(authorization, inventory))
            report.checks_run.append(CHECK_AUTHORIZATION)

        if CHECK_MINIMUM_VERSION in checks:
            report.findings.extend(self._engine.check_minimum_version(authorization, inventory))
            report.checks_run.append(CHECK_MINIMUM_VERSION)

        if advisory_feed is not None:
            report.findings.extend(self._matcher.check_advisories(inventory, advisory_feed))
            report.checks_run.append(CHECK_ADVISORIES)

        if run_unused:
            report.findings.extend(self._unused.check_unused(inventory, lock_manifest_names))
            report.checks_run.append(CHECK_UNUSED)

        # Inventory order; the stable sort keeps check order within a package.
        position = {}
        for index, package in enumerate(inventory):
            position.setdefault(package.name, index)
        report.findings.sort(key=lambda finding: position.get(finding.name, len(position)))

        # ── Step 3: report ────────────────────────────────────────────────────
        logger.info(
            "Audit finished | project=%s | checks=%s | findings=%d",
            project_id, ",".join(report.checks_run), len(report.findings),
        )
        if self._sink is not None:
            self._sink.emit(report.findings)
        return report
