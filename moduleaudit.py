#!/usr/bin/env python3
"""
moduleaudit.py — ModuleAudit entry point.
──────────────────────────────────────────
Audits the contrib modules of a Drupal project against the QA team's
package policy:

    moduleaudit check-modules-authorized-security 12
    moduleaudit check-modules-minimum-version 12
    moduleaudit check-modules-unused --composer ../composer.lock
    moduleaudit check-all 12
    moduleaudit scope set 12

Commands
────────
  check-modules-authorized-security [PROJECT_ID]   (alias: cmas)
        Modules not authorised for the project, plus security advisories.
  check-modules-minimum-version [PROJECT_ID]       (alias: cmmv)
        Modules installed below their minimum accepted version.
  check-modules-unused                             (alias: cmu)
        Disabled contrib modules declared in composer.lock (all disabled
        contrib modules when composer.lock is missing).
  check-all [PROJECT_ID]
        All of the above in one run.
  scope show | set PROJECT_ID | clear
        Manage the remembered project id used when PROJECT_ID is omitted.

Every option also reads a MODULEAUDIT_* environment variable; a .env file
next to this script is loaded at start-up.

Exit Codes
──────────
  0     No findings.
  1     The audit could not run (policy/advisory fetch failed, bad inventory…).
  2     Findings were reported (disable with --no-fail).
  3     No findings, but a check was skipped (no advisory feed configured,
        or no --extension-config for the unused check).
"""

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from compliance_engine import (
    CollectingReportSink,
    ComplianceAuditor,
    ComplianceError,
    LoggingReportSink,
    PolicyStore,
)
from compliance_engine.inventory import DEFAULT_CONTRIB_PREFIX
from compliance_engine.policy_store import DEFAULT_POLICY_URL
from providers import (
    FileAdvisoryFeed,
    HttpAdvisoryFeed,
    InfoFileInventory,
    ProjectScopeStore,
    read_lock_manifest,
    resolve_project_id,
)
from providers.project_scope import DEFAULT_SCOPE_FILE

__version__ = "0.1.0"

_PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FINDINGS = 2
EXIT_INCOMPLETE = 3

logger = logging.getLogger("moduleaudit")


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moduleaudit",
        description=(
            "ModuleAudit checks contrib modules against the QA package "
            "policy, minimum versions and security advisories."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--root",
        default=os.getenv("MODULEAUDIT_ROOT", "."),
        metavar="PATH",
        help="Project root to scan for .info.yml files. Default: current directory.",
    )
    parser.add_argument(
        "--contrib-path",
        default=os.getenv("MODULEAUDIT_CONTRIB_PATH", DEFAULT_CONTRIB_PREFIX),
        metavar="PATH",
        help=f"Path prefix of third-party modules. Default: {DEFAULT_CONTRIB_PREFIX}",
    )
    parser.add_argument(
        "--extension-config",
        default=os.getenv("MODULEAUDIT_EXTENSION_CONFIG"),
        metavar="FILE",
        help="Exported core.extension.yml listing the enabled modules.",
    )
    parser.add_argument(
        "--policy-url",
        default=os.getenv("MODULEAUDIT_POLICY_URL", DEFAULT_POLICY_URL),
        metavar="URL",
        help="QA package policy endpoint.",
    )
    feed = parser.add_mutually_exclusive_group()
    feed.add_argument(
        "--advisory-url",
        default=os.getenv("MODULEAUDIT_ADVISORY_URL"),
        metavar="URL",
        help="Security advisory feed endpoint.",
    )
    feed.add_argument(
        "--advisory-file",
        default=os.getenv("MODULEAUDIT_ADVISORY_FILE"),
        metavar="FILE",
        help="Security advisory feed as a local JSON file.",
    )
    parser.add_argument(
        "--scope-file",
        default=os.getenv("MODULEAUDIT_SCOPE_FILE", DEFAULT_SCOPE_FILE),
        metavar="FILE",
        help=f"File remembering the current project id. Default: {DEFAULT_SCOPE_FILE}",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=float(os.getenv("MODULEAUDIT_TIMEOUT", "30")),
        metavar="SECONDS",
        help="HTTP timeout for the policy and advisory requests. Default: 30.",
    )
    parser.add_argument(
        "--format",
        choices=["log", "json"],
        default="log",
        help="'log' writes one log line per finding; 'json' prints a report to stdout.",
    )
    parser.add_argument(
        "--no-fail",
        action="store_true",
        default=False,
        help="Do not exit 2 when findings are reported.",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the Python logging level. Default: WARNING.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ModuleAudit {__version__}",
    )

    commands = parser.add_subparsers(dest="command_name", metavar="COMMAND")
    commands.required = True

    cmas = commands.add_parser(
        "check-modules-authorized-security", aliases=["cmas"],
        help="List non authorised modules and security updates.",
    )
    _add_project_id_argument(cmas)
    cmas.set_defaults(command="check-modules-authorized-security")

    cmmv = commands.add_parser(
        "check-modules-minimum-version", aliases=["cmmv"],
        help="List modules below their minimum accepted version.",
    )
    _add_project_id_argument(cmmv)
    cmmv.set_defaults(command="check-modules-minimum-version")

    cmu = commands.add_parser(
        "check-modules-unused", aliases=["cmu"],
        help="List disabled contrib modules cross-referenced with composer.lock.",
    )
    _add_composer_argument(cmu)
    cmu.set_defaults(command="check-modules-unused")

    check_all = commands.add_parser("check-all", help="Run every check.")
    _add_project_id_argument(check_all)
    _add_composer_argument(check_all)
    check_all.set_defaults(command="check-all")

    scope = commands.add_parser("scope", help="Show, set or clear the remembered project id.")
    scope_actions = scope.add_subparsers(dest="scope_action", metavar="ACTION")
    scope_actions.required = True
    scope_actions.add_parser("show")
    scope_set = scope_actions.add_parser("set")
    scope_set.add_argument("project_id")
    scope_actions.add_parser("clear")
    scope.set_defaults(command="scope")

    return parser


def _add_project_id_argument(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "project_id",
        nargs="?",
        default=None,
        help="Project ID for which to check modules. Default: the remembered project id.",
    )


def _add_composer_argument(sub: argparse.ArgumentParser) -> None:
    sub.add_argument(
        "--composer",
        default=os.getenv("MODULEAUDIT_COMPOSER_LOCK", "../composer.lock"),
        metavar="FILE",
        help="composer.lock to cross-reference modules with. Default: ../composer.lock",
    )


def configure_logging(level_str: str) -> None:
    """Set up structured logging to stderr."""
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, level_str.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    # Findings are the tool's output: never hide them behind --log-level.
    logging.getLogger("moduleaudit.report").setLevel(logging.WARNING)


def build_auditor(args: argparse.Namespace, sink) -> ComplianceAuditor:
    """
    Construct the ComplianceAuditor from CLI arguments.

    Collaborators:
        Policy     : PolicyStore over --policy-url
        Inventory  : InfoFileInventory over --root
        Advisories : HttpAdvisoryFeed (--advisory-url), FileAdvisoryFeed
                     (--advisory-file) or none
    """
    advisory_provider = None
    if args.advisory_url:
        advisory_provider = HttpAdvisoryFeed(args.advisory_url, timeout=args.timeout)
    elif args.advisory_file:
        advisory_provider = FileAdvisoryFeed(args.advisory_file)

    return ComplianceAuditor(
        policy_store=PolicyStore(url=args.policy_url, timeout=args.timeout),
        inventory_provider=InfoFileInventory(
            root=args.root,
            contrib_prefix=args.contrib_path,
            extension_config=args.extension_config,
        ),
        advisory_provider=advisory_provider,
        sink=sink,
        contrib_prefix=args.contrib_path,
    )


def _lock_manifest(args: argparse.Namespace):
    names = read_lock_manifest(args.composer)
    if names is None:
        logger.warning("Showing all disabled modules in %s.", args.contrib_path)
    return names


def run_scope_command(args: argparse.Namespace) -> int:
    store = ProjectScopeStore(args.scope_file)
    if args.scope_action == "set":
        store.set(args.project_id)
    elif args.scope_action == "clear":
        store.clear()
    else:
        current = store.get()
        print(current if current is not None else "(none)")
    return EXIT_OK


def run_audit(args: argparse.Namespace) -> int:
    sink = CollectingReportSink() if args.format == "json" else LoggingReportSink()
    auditor = build_auditor(args, sink)

    project_id = None
    if args.command != "check-modules-unused":
        project_id = resolve_project_id(args.project_id, ProjectScopeStore(args.scope_file))
        logger.info("Project scope: %s", project_id if project_id is not None else "global only")

    if args.command == "check-modules-authorized-security":
        report = auditor.audit_authorized_security(project_id)
    elif args.command == "check-modules-minimum-version":
        report = auditor.audit_minimum_version(project_id)
    elif args.command == "check-modules-unused":
        report = auditor.audit_unused(_lock_manifest(args))
    else:
        report = auditor.audit_all(project_id, _lock_manifest(args))

    if args.format == "json":
        print(json.dumps(report.to_dict(), indent=2))

    if report.findings and not args.no_fail:
        return EXIT_FINDINGS
    if not report.is_complete:
        logger.warning("Incomplete audit, skipped: %s", ", ".join(report.checks_skipped))
        return EXIT_INCOMPLETE
    return EXIT_OK


def main(argv=None) -> int:
    """
    ModuleAudit entry point.

    Returns the exit code to pass to the OS.
    """
    load_dotenv(os.path.join(_PROJECT_ROOT, ".env"))

    parser = build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level)
    logger.info("ModuleAudit %s starting (%s)", __version__, args.command)

    if args.command == "scope":
        return run_scope_command(args)

    try:
        return run_audit(args)
    except ComplianceError as exc:
        logger.error("Audit aborted: %s", exc)
        print(f"\033[31m[ModuleAudit] Audit failed: {exc}\033[0m", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
