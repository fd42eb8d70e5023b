"""Interpret the outcome of a remote chef-client run."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from chefrun.failure_mapper import raise_mapped_exception
from chefrun.types import CommandResult

logger = logging.getLogger(__name__)


class RunResultClassifier:
    """Turns a RunOutcome into success or exactly one ConvergeError."""

    def __init__(self, target_host: Any, cache_path: str) -> None:
        self.target_host = target_host
        self.cache_path = cache_path
        self.commands = target_host.commands

    def classify(self, outcome: CommandResult) -> None:
        """
        Return normally when the run succeeded, otherwise raise a ConvergeError.

        On failure the remote report is read and then deleted, in that order,
        so that a later session never picks up this run's report. When the
        report cannot be read no delete is attempted.

        Raises:
            ConvergeError: RemoteReportUnavailable or RemoteRunFailed.
            RemoteCommandFailed: If the report exists but cannot be deleted.
        """
        if outcome.exit_status == 0:
            logger.debug(outcome.stdout)
            return

        read = self.target_host.run_command(self.commands.read_report(self.cache_path))
        if read.exit_status != 0:
            logger.error("Could not read remote report:")
            logger.error(f"stdout: {read.stdout}")
            logger.error(f"stderr: {read.stderr}")
            raise_mapped_exception(None, outcome.stdout, outcome.stderr, report_available=False)

        report = self._parse_report(read.stdout)
        # Delete before mapping: a later run that fails without writing a
        # report must not find this one.
        self.target_host.run_command_or_fail(self.commands.delete_report(self.cache_path))

        exception = report.get("exception")
        logger.error("Remote chef-client error follows:")
        logger.error(exception)
        raise_mapped_exception(exception, outcome.stdout, outcome.stderr)

    @staticmethod
    def _parse_report(text: str) -> Dict[str, Any]:
        try:
            report: Optional[Any] = json.loads(text)
        except ValueError:
            logger.warning("Remote report is not valid JSON; using its raw text")
            return {"exception": text.strip() or None}
        if not isinstance(report, dict):
            return {"exception": text.strip() or None}
        return report
