"""
tests/integration/test_audit_scenarios.py

End-to-end audit scenarios for ModuleAudit.
────────────────────────────────────────────
These tests exercise the full stack:

    policy feed (HTTP, mocked)
        → PolicyStore         (decode + resolve scope)
        → InventoryProvider   (static or .info.yml tree)
        → ComplianceEngine    (authorization / minimum version)
        → AdvisoryMatcher     (security feed)
        → UnusedPackageDetector
        → ReportSink / CLI exit code

No real network call is made: `requests.get` is patched in the policy store.

Run with:
    python -m pytest tests/integration/test_audit_scenarios.py -v
"""

import json
import os
import sys
import tempfile
import textwrap
import unittest
from unittest.mock import MagicMock, patch

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

import moduleaudit
from compliance_engine.advisories import AdvisoryRecord
from compliance_engine.auditor import ComplianceAuditor
from compliance_engine.errors import AdvisoryFetchError, PolicyFetchError
from compliance_engine.findings import (
    FindingKind,
    OutdatedPackage,
    SecurityAdvisory,
    UnauthorizedPackage,
    UnusedPackage,
)
from compliance_engine.inventory import InstalledPackage, SourceClass
from compliance_engine.policy_store import PolicyStore
from compliance_engine.reporting import CollectingReportSink
from providers.advisory_feed import StaticAdvisoryFeed
from providers.discovery import StaticInventory


# ─────────────────────────────────────────────────────────────────────────────
# Shared helpers
# ─────────────────────────────────────────────────────────────────────────────

POLICY = [
    {"name": "token", "restricted_use": "0", "version": "8.x-1.7"},
    {"name": "ctools", "restricted_use": "0", "version": ""},
    {"name": "webform", "restricted_use": "7,12", "version": "6.0.0"},
    {"name": "devel", "restricted_use": "1", "version": "5.0"},
]


def _policy_response(status_code=200, payload=None):
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = POLICY if payload is None else payload
    return resp


def _contrib(name, version, enabled=True):
    return InstalledPackage(
        name=name,
        declared_version=version,
        source_class=SourceClass.THIRD_PARTY,
        enabled=enabled,
        path=f"web/modules/contrib/{name}",
    )


INVENTORY = [
    _contrib("token", "8.x-1.5"),
    _contrib("ctools", "8.x-3.0"),
    _contrib("webform", "6.1.0"),
    _contrib("devel", "5.0", enabled=False),
    InstalledPackage(
        name="my_site", declared_version=None,
        source_class=SourceClass.FIRST_PARTY, path="web/modules/custom/my_site",
    ),
]


def _auditor(sink, advisories=None, inventory=INVENTORY):
    return ComplianceAuditor(
        policy_store=PolicyStore(url="https://qa.example/api"),
        inventory_provider=StaticInventory(inventory),
        advisory_provider=StaticAdvisoryFeed(advisories) if advisories is not None else None,
        sink=sink,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Auditor scenarios
# ─────────────────────────────────────────────────────────────────────────────

@patch("compliance_engine.policy_store.requests.get")
class TestAuditorScenarios(unittest.TestCase):

    def test_authorized_security_for_listed_project(self, mock_get):
        mock_get.return_value = _policy_response()
        sink = CollectingReportSink()
        advisories = {"devel": AdvisoryRecord("devel", "5.0", "5.1")}

        report = _auditor(sink, advisories).audit_authorized_security(project_id="12")

        self.assertEqual(report.findings, [
            UnauthorizedPackage(name="devel"),
            SecurityAdvisory(name="devel", installed_version="5.0", recommended_version="5.1"),
        ])
        self.assertEqual(sink.findings, report.findings)
        self.assertEqual(report.checks_run, ["authorization", "advisories"])

    def test_restricted_package_unauthorized_without_project(self, mock_get):
        mock_get.return_value = _policy_response()

        report = _auditor(CollectingReportSink(), advisories={}).audit_authorized_security()

        self.assertEqual(
            [f.name for f in report.findings if f.kind is FindingKind.UNAUTHORIZED],
            ["webform", "devel"],
        )

    def test_advisory_check_skipped_without_feed(self, mock_get):
        mock_get.return_value = _policy_response()

        report = _auditor(CollectingReportSink()).audit_authorized_security("12")

        self.assertEqual(report.checks_skipped, ["advisories"])
        self.assertNotIn("advisories", report.checks_run)

    def test_skipped_advisory_check_is_never_compliant(self, mock_get):
        mock_get.return_value = _policy_response()
        inventory = [_contrib("token", "8.x-1.7")]

        report = _auditor(CollectingReportSink(), inventory=inventory).audit_authorized_security()

        self.assertEqual(report.findings, [])
        self.assertFalse(report.is_complete)
        self.assertFalse(report.is_compliant)
        self.assertFalse(report.to_dict()["compliant"])

    def test_findings_are_listed_per_package(self, mock_get):
        mock_get.return_value = _policy_response(payload=[])
        inventory = [_contrib("foo", "1.0"), _contrib("bar", "2.0")]
        advisories = {
            "foo": AdvisoryRecord("foo", "1.0", "1.1"),
            "bar": AdvisoryRecord("bar", "2.0", "2.1"),
        }

        report = _auditor(CollectingReportSink(), advisories, inventory).audit_authorized_security()

        self.assertEqual([(f.name, f.kind) for f in report.findings], [
            ("foo", FindingKind.UNAUTHORIZED),
            ("foo", FindingKind.SECURITY_ADVISORY),
            ("bar", FindingKind.UNAUTHORIZED),
            ("bar", FindingKind.SECURITY_ADVISORY),
        ])
        self.assertTrue(report.is_complete)

    def test_minimum_version(self, mock_get):
        mock_get.return_value = _policy_response()

        report = _auditor(CollectingReportSink()).audit_minimum_version("12")

        self.assertEqual(report.findings, [
            OutdatedPackage(name="token", installed_version="8.x-1.5", required_minimum_version="8.x-1.7"),
        ])

    def test_audit_all_collects_every_check(self, mock_get):
        mock_get.return_value = _policy_response()
        advisories = {"token": AdvisoryRecord("token", "8.x-1.5", "8.x-1.7")}

        report = _auditor(CollectingReportSink(), advisories).audit_all("12", lock_manifest_names=None)

        self.assertEqual([(f.name, f.kind) for f in report.findings], [
            ("token", FindingKind.OUTDATED),
            ("token", FindingKind.SECURITY_ADVISORY),
            ("devel", FindingKind.UNAUTHORIZED),
            ("devel", FindingKind.UNUSED),
        ])
        self.assertFalse(report.is_compliant)
        self.assertEqual(len(report.by_kind()[FindingKind.UNUSED]), 1)

    def test_policy_fetch_failure_produces_no_findings(self, mock_get):
        mock_get.return_value = _policy_response(status_code=500)
        sink = CollectingReportSink()

        with self.assertRaises(PolicyFetchError):
            _auditor(sink, advisories={}).audit_all("12")

        self.assertEqual(sink.findings, [])
        self.assertEqual(sink.emit_calls, 0)

    def test_empty_policy_flags_every_contrib_module(self, mock_get):
        mock_get.return_value = _policy_response(payload=[])

        report = _auditor(CollectingReportSink()).audit_authorized_security()

        self.assertEqual(
            [f.name for f in report.findings],
            ["token", "ctools", "webform", "devel"],
        )

    def test_advisory_failure_propagates(self, mock_get):
        mock_get.return_value = _policy_response()
        failing = MagicMock()
        failing.name = "FailingFeed"
        failing.fetch.side_effect = AdvisoryFetchError("feed down")
        sink = CollectingReportSink()
        auditor = ComplianceAuditor(
            policy_store=PolicyStore(),
            inventory_provider=StaticInventory(INVENTORY),
            advisory_provider=failing,
            sink=sink,
        )

        with self.assertRaises(AdvisoryFetchError):
            auditor.audit_authorized_security("12")

        self.assertEqual(sink.emit_calls, 0)

    def test_unused_does_not_fetch_policy(self, mock_get):
        report = _auditor(CollectingReportSink()).audit_unused(frozenset({"devel"}))

        mock_get.assert_not_called()
        self.assertEqual(report.findings, [UnusedPackage(name="devel")])

    def test_unused_skipped_when_enabled_state_unknown(self, mock_get):
        inventory = INVENTORY + [
            InstalledPackage(
                name="pathauto", declared_version="1.0", source_class=SourceClass.THIRD_PARTY,
                enabled=None, path="web/modules/contrib/pathauto",
            ),
        ]

        report = _auditor(CollectingReportSink(), inventory=inventory).audit_unused(None)

        self.assertEqual(report.findings, [])
        self.assertEqual(report.checks_skipped, ["unused"])
        self.assertEqual(report.checks_run, [])
        self.assertFalse(report.is_compliant)


# ─────────────────────────────────────────────────────────────────────────────
# CLI scenarios
# ─────────────────────────────────────────────────────────────────────────────

class TestCommandLine(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        info = os.path.join(self.root, "web", "modules", "contrib", "token")
        os.makedirs(info)
        with open(os.path.join(info, "token.info.yml"), "w", encoding="utf-8") as f:
            f.write(textwrap.dedent("""
                name: Token
                type: module
                version: 8.x-1.5
                project: token
            """))
        self.scope_file = os.path.join(self.root, "scope.json")

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, name, content):
        path = os.path.join(self.root, name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(content)
        return path

    def _main(self, *args):
        return moduleaudit.main([
            "--root", self.root,
            "--scope-file", self.scope_file,
            "--policy-url", "https://qa.example/api",
            *args,
        ])

    @patch("compliance_engine.policy_store.requests.get")
    def test_findings_exit_code(self, mock_get):
        mock_get.return_value = _policy_response()

        self.assertEqual(self._main("cmmv", "12"), moduleaudit.EXIT_FINDINGS)

    @patch("compliance_engine.policy_store.requests.get")
    def test_no_fail_exit_code(self, mock_get):
        mock_get.return_value = _policy_response()

        self.assertEqual(self._main("--no-fail", "cmmv", "12"), moduleaudit.EXIT_OK)

    @patch("compliance_engine.policy_store.requests.get")
    def test_compliant_exit_code(self, mock_get):
        mock_get.return_value = _policy_response(payload=[
            {"name": "token", "restricted_use": "0", "version": "8.x-1.5"},
        ])

        self.assertEqual(
            self._main("--advisory-file", self._write("advisories.json", "{}"),
                       "check-modules-authorized-security"),
            moduleaudit.EXIT_OK,
        )

    @patch("compliance_engine.policy_store.requests.get")
    def test_authorized_security_without_feed_is_incomplete(self, mock_get):
        mock_get.return_value = _policy_response(payload=[
            {"name": "token", "restricted_use": "0", "version": "8.x-1.5"},
        ])

        with patch("builtins.print") as mock_print:
            code = self._main("--format", "json", "cmas")

        self.assertEqual(code, moduleaudit.EXIT_INCOMPLETE)
        report = json.loads(mock_print.call_args[0][0])
        self.assertFalse(report["compliant"])
        self.assertEqual(report["checks_skipped"], ["advisories"])

    @patch("compliance_engine.policy_store.requests.get")
    def test_policy_failure_exit_code_and_no_report(self, mock_get):
        mock_get.return_value = _policy_response(status_code=404)

        with patch("builtins.print") as mock_print:
            code = self._main("--format", "json", "cmas", "12")

        self.assertEqual(code, moduleaudit.EXIT_ERROR)
        printed = [c.args[0] for c in mock_print.call_args_list]
        self.assertFalse(any(text.lstrip().startswith("{") for text in printed))

    @patch("compliance_engine.policy_store.requests.get")
    def test_json_report(self, mock_get):
        mock_get.return_value = _policy_response()

        with patch("builtins.print") as mock_print:
            self._main("--format", "json", "cmmv", "12")

        report = json.loads(mock_print.call_args[0][0])
        self.assertEqual(report["project_id"], "12")
        self.assertEqual(report["findings"][0]["kind"], "outdated")
        self.assertEqual(report["findings"][0]["required_minimum_version"], "8.x-1.7")

    @patch("compliance_engine.policy_store.requests.get")
    def test_remembered_project_id_is_used(self, mock_get):
        mock_get.return_value = _policy_response()
        self.assertEqual(self._main("scope", "set", "12"), moduleaudit.EXIT_OK)

        with patch("builtins.print") as mock_print:
            self._main("--format", "json", "cmas")

        report = json.loads(mock_print.call_args[0][0])
        self.assertEqual(report["project_id"], "12")

    def test_unused_without_extension_config_is_incomplete(self):
        with patch("builtins.print") as mock_print:
            code = self._main(
                "--format", "json", "cmu", "--composer", os.path.join(self.root, "composer.lock"),
            )

        self.assertEqual(code, moduleaudit.EXIT_INCOMPLETE)
        report = json.loads(mock_print.call_args[0][0])
        self.assertEqual(report["findings"], [])
        self.assertEqual(report["checks_skipped"], ["unused"])
        self.assertFalse(report["compliant"])

    def test_unused_with_missing_composer_lock_flags_disabled_module(self):
        config = self._write("core.extension.yml", "module:\n  node: 0\n")

        with patch("builtins.print") as mock_print:
            code = self._main(
                "--format", "json", "--extension-config", config,
                "cmu", "--composer", os.path.join(self.root, "composer.lock"),
            )

        self.assertEqual(code, moduleaudit.EXIT_FINDINGS)
        report = json.loads(mock_print.call_args[0][0])
        self.assertEqual(report["findings"], [{"name": "token", "kind": "unused"}])


if __name__ == "__main__":
    unittest.main()
