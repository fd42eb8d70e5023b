"""Type definitions shared by the convergence orchestrator."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(slots=True)
class CommandResult:
    """Structured result of a single remote command."""

    exit_status: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


@dataclass(slots=True)
class StagedArtifact:
    """A file that must exist in the remote working directory before the run.

    Exactly one of ``local_path`` or ``content`` is set: the policy bundle is
    uploaded from disk, the generated config and reporter are rendered first.
    """

    remote_name: str
    local_path: Optional[Path] = None
    content: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.remote_name or not isinstance(self.remote_name, str):
            raise ValueError("remote_name must be a non-empty string")
        if (self.local_path is None) == (self.content is None):
            raise ValueError("Provide exactly one of local_path or content")


@dataclass(slots=True)
class JobResult:
    """Outcome of one convergence job run as part of a batch."""

    host: str
    exception: Optional[BaseException] = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.exception is None
