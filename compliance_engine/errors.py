"""
compliance_engine/errors.py

Error hierarchy for ModuleAudit.

Every error below is terminal for the evaluation run that raised it. The
auditor never converts one of them into an empty report: an empty report
means "compliant", and a failed fetch must never look like that.

A missing lock manifest is NOT represented here: it is valid
input meaning "absent" (see providers/lock_manifest.py).
"""

from typing import Optional


class ComplianceError(Exception):
    """Base class for every error raised by the auditing pipeline."""


class PolicyFetchError(ComplianceError):
    """
    The policy service could not be reached or answered with a non-200 status.

    Attributes:
        url         : The policy URL that was requested.
        status_code : HTTP status code, or None for transport failures.
    """

    def __init__(self, message: str, url: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class PolicyParseError(ComplianceError):
    """The policy feed was received but is not a valid list of package rules."""


class AdvisoryFetchError(ComplianceError):
    """
    The advisory feed could not be fetched or decoded.

    Raised instead of returning an empty mapping, which would read as
    "no known security issues".
    """

    def __init__(self, message: str, source: str = "", status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class InventoryError(ComplianceError):
    """The inventory provider failed while enumerating installed packages."""

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path
