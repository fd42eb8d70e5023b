"""Stage policy bundles on remote targets and converge them with chef-client."""

from chefrun.actions import ConvergeTarget, SessionState, converge
from chefrun.classifier import RunResultClassifier
from chefrun.config import ChefRunConfig, get_config
from chefrun.errors import (
    ChefRunError,
    ConfigUploadFailed,
    ConvergeError,
    HandlerUploadFailed,
    MultiJobFailure,
    PolicyUploadFailed,
    RemoteCommandFailed,
    RemoteReportUnavailable,
    RemoteRunFailed,
)
from chefrun.failure_mapper import FailureCategory
from chefrun.jobs import ConvergeJob, converge_all
from chefrun.session import RemoteSession
from chefrun.ssh import SSHClient
from chefrun.target_host import TargetHost
from chefrun.types import CommandResult, JobResult, StagedArtifact

__all__ = [
    "converge",
    "converge_all",
    "ConvergeTarget",
    "ConvergeJob",
    "SessionState",
    "RemoteSession",
    "RunResultClassifier",
    "FailureCategory",
    "TargetHost",
    "SSHClient",
    "ChefRunConfig",
    "get_config",
    "CommandResult",
    "JobResult",
    "StagedArtifact",
    "ChefRunError",
    "ConvergeError",
    "PolicyUploadFailed",
    "ConfigUploadFailed",
    "HandlerUploadFailed",
    "RemoteReportUnavailable",
    "RemoteRunFailed",
    "RemoteCommandFailed",
    "MultiJobFailure",
]
