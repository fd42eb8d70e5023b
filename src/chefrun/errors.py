"""Error hierarchy for remote convergence.

Every error carries a machine-readable ``id`` so operators can look up the
failure category without parsing the message text.
"""
from __future__ import annotations

from typing import Any, Dict, List, Sequence

MESSAGES: Dict[str, str] = {
    "CHEFUPL003": "Failed to upload the remote run configuration.",
    "CHEFUPL004": "Failed to upload the remote report handler.",
    "CHEFUPL005": "Failed to upload the policy bundle to the target.",
    "CHEFCCR000": "The remote chef-client run failed: {0}",
    "CHEFCCR001": (
        "The remote chef-client run failed and no report could be read.\n"
        "stdout: {0}\nstderr: {1}"
    ),
    "CHEFCCR002": "The remote chef-client run had an error: {0}",
    "CHEFCCR003": "Action '{0}' is not valid for this resource. Valid actions: {1}",
    "CHEFCCR004": "A resource property has an invalid value: {0}",
    "CHEFCCR005": "'{0}' is not a known resource or helper.",
    "CHEFCCR006": "'{1}' is not a valid property of {0}.",
    "CHEFRMT001": "Remote command failed with exit status {1}: {0}\n{2}",
    "CHEFMULTI001": "{0} of {1} jobs failed.",
}


class ChefRunError(RuntimeError):
    """Base exception for all categorized failures."""

    def __init__(self, error_id: str, *args: Any) -> None:
        self.id = error_id
        self.params = args
        self.message = self._format(error_id, args)
        super().__init__(f"{error_id}: {self.message}")

    @staticmethod
    def _format(error_id: str, args: Sequence[Any]) -> str:
        template = MESSAGES.get(error_id)
        if template is None:
            return " ".join(str(a) for a in args)
        try:
            return template.format(*args)
        except (IndexError, KeyError):
            return f"{template} {list(args)}"


class RemoteCommandFailed(ChefRunError):
    """Raised by ``run_command_or_fail`` when a remote command exits non-zero."""

    def __init__(self, command: str, exit_status: int, stderr: str = "") -> None:
        self.command = command
        self.exit_status = exit_status
        self.stderr = stderr
        super().__init__("CHEFRMT001", command, exit_status, stderr)


class ConvergeError(ChefRunError):
    """A failed convergence session. Exactly one is raised per failed session."""


class PolicyUploadFailed(ConvergeError):
    def __init__(self) -> None:
        super().__init__("CHEFUPL005")


class ConfigUploadFailed(ConvergeError):
    def __init__(self) -> None:
        super().__init__("CHEFUPL003")


class HandlerUploadFailed(ConvergeError):
    def __init__(self) -> None:
        super().__init__("CHEFUPL004")


class RemoteReportUnavailable(ConvergeError):
    """The run failed and its report could not be read."""

    def __init__(self, stdout: str, stderr: str) -> None:
        self.stdout = stdout
        self.stderr = stderr
        super().__init__("CHEFCCR001", stdout, stderr)


class RemoteRunFailed(ConvergeError):
    """The run failed and its report was mapped to a known category."""

    def __init__(self, category: Any, *args: Any, stdout: str = "", stderr: str = "") -> None:
        self.category = category
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(category.value, *args)


class MultiJobFailure(ChefRunError):
    """Raised after a batch of jobs completes with at least one failure."""

    def __init__(self, failed_jobs: List[Any], total: int) -> None:
        self.jobs = failed_jobs
        super().__init__("CHEFMULTI001", len(failed_jobs), total)
