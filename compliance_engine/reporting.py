"""
compliance_engine/reporting.py

Report sinks. The core only defines the finding shape; sinks decide where the
findings go.
"""

import logging
from typing import List, Optional, Sequence

from .base import ReportSink
from .findings import Finding

REPORT_LOGGER_NAME = "moduleaudit.report"


class LoggingReportSink(ReportSink):
    """
    Writes one log record per finding at the finding's level. The structured
    form of the finding travels in `record.finding`.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(REPORT_LOGGER_NAME)

    def emit(self, findings: Sequence[Finding]) -> None:
        for finding in findings:
            self._logger.log(finding.level, finding.message, extra={"finding": finding.to_dict()})


class CollectingReportSink(ReportSink):
    """Keeps every emitted finding in memory."""

    def __init__(self) -> None:
        self.findings: List[Finding] = []
        self.emit_calls = 0

    def emit(self, findings: Sequence[Finding]) -> None:
        self.emit_calls += 1
        self.findings.extend(findings)
