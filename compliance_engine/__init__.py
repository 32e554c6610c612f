"""
compliance_engine — ModuleAudit's package compliance core.

Public API:
    ComplianceAuditor     : Orchestrator, use this from application code.
    PolicyStore           : Fetches the QA authorization policy.
    resolve_effective     : Policy entries → authorization set for a project.
    ComplianceEngine      : Authorization and minimum-version checks.
    AdvisoryMatcher       : Security advisory cross-reference.
    UnusedPackageDetector : Disabled-but-declared contrib packages.
    compare               : Version precedence with an "unknown version" signal.
"""

from .advisories import AdvisoryMatcher, AdvisoryRecord
from .auditor import AuditReport, ComplianceAuditor
from .base import AdvisoryProvider, InventoryProvider, ReportSink
from .engine import ComplianceEngine
from .errors import (
    AdvisoryFetchError,
    ComplianceError,
    InventoryError,
    PolicyFetchError,
    PolicyParseError,
)
from .findings import (
    Finding,
    FindingKind,
    OutdatedPackage,
    SecurityAdvisory,
    UnauthorizedPackage,
    UnknownVersion,
    UnusedPackage,
)
from .inventory import InstalledPackage, PackageInventory, SourceClass, classify_source
from .policy_store import (
    EffectiveAuthorization,
    GlobalScope,
    PolicyEntry,
    PolicyStore,
    ReservedScope,
    RestrictedScope,
    parse_policy,
    resolve_effective,
)
from .reporting import CollectingReportSink, LoggingReportSink
from .unused import UnusedPackageDetector
from .version import Ordering, VersionComparison, compare

__all__ = [
    "AdvisoryFetchError",
    "AdvisoryMatcher",
    "AdvisoryProvider",
    "AdvisoryRecord",
    "AuditReport",
    "CollectingReportSink",
    "ComplianceAuditor",
    "ComplianceEngine",
    "ComplianceError",
    "EffectiveAuthorization",
    "Finding",
    "FindingKind",
    "GlobalScope",
    "InstalledPackage",
    "InventoryError",
    "InventoryProvider",
    "LoggingReportSink",
    "Ordering",
    "OutdatedPackage",
    "PackageInventory",
    "PolicyEntry",
    "PolicyFetchError",
    "PolicyParseError",
    "PolicyStore",
    "ReportSink",
    "ReservedScope",
    "RestrictedScope",
    "SecurityAdvisory",
    "SourceClass",
    "UnauthorizedPackage",
    "UnknownVersion",
    "UnusedPackage",
    "UnusedPackageDetector",
    "VersionComparison",
    "classify_source",
    "compare",
    "parse_policy",
    "resolve_effective",
]
