"""Converge a target host against a locally built policy bundle."""
from __future__ import annotations

import logging
import posixpath
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional

from chefrun import bundle
from chefrun.actions.base import Action, NotificationHandler, TelemetrySink
from chefrun.classifier import RunResultClassifier
from chefrun.config import ChefRunConfig
from chefrun.errors import ConfigUploadFailed, HandlerUploadFailed, PolicyUploadFailed
from chefrun.session import RemoteSession
from chefrun.types import CommandResult

logger = logging.getLogger(__name__)

# Errors an upload can raise when the transport fails.
TRANSPORT_ERRORS = (RuntimeError, OSError)


class SessionState(Enum):
    CREATED = "created"
    DIRECTORY_READY = "directory_ready"
    ARTIFACTS_STAGED = "artifacts_staged"
    RUN_INVOKED = "run_invoked"
    TORN_DOWN = "torn_down"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class ConvergeTarget(Action):
    """
    Stage a policy bundle on the target, run chef-client against it and
    classify the result.

    Notifications, in order: ``creating_remote_policy``, ``running_chef``,
    then ``success`` or ``converge_error``.
    """

    name = "converge_target"

    def __init__(
        self,
        target_host: Any,
        local_policy_path: str | Path,
        cache_path: Optional[str] = None,
        config: Optional[ChefRunConfig] = None,
        telemetry_sink: Optional[TelemetrySink] = None,
    ) -> None:
        super().__init__(target_host, config=config, telemetry_sink=telemetry_sink)
        if not local_policy_path:
            raise ValueError("local_policy_path is required")
        self.local_policy_path = Path(local_policy_path)
        self.cache_path = cache_path or self.config.cache_path or target_host.commands.ws_cache_path
        self.states: List[SessionState] = [SessionState.CREATED]
        self.remote_dir_path: Optional[str] = None

    @property
    def state(self) -> SessionState:
        return self.states[-1]

    def perform_action(self) -> None:
        if not self.local_policy_path.is_file():
            raise FileNotFoundError(f"Policy bundle not found: {self.local_policy_path}")

        session = RemoteSession(self.target_host, self.local_policy_path)
        try:
            with session:
                self.remote_dir_path = session.remote_dir_path
                self._transition(SessionState.DIRECTORY_READY)

                self.notify("creating_remote_policy")
                remote_policy_path = self.create_remote_policy(session)
                remote_config_path = self.create_remote_config(session)
                self.create_remote_handler(session)
                self._transition(SessionState.ARTIFACTS_STAGED)

                self.notify("running_chef")
                outcome = self.run_chef(session, remote_config_path, remote_policy_path)
                self._transition(SessionState.RUN_INVOKED)
        finally:
            if session.torn_down:
                self._transition(SessionState.TORN_DOWN)

        if outcome.exit_status == 0:
            RunResultClassifier(self.target_host, self.cache_path).classify(outcome)
            self._transition(SessionState.SUCCEEDED)
            self.notify("success")
            return

        self._transition(SessionState.FAILED)
        self.notify("converge_error")
        RunResultClassifier(self.target_host, self.cache_path).classify(outcome)

    def create_remote_policy(self, session: RemoteSession) -> str:
        artifact = bundle.policy_artifact(self.local_policy_path)
        try:
            return session.upload(artifact)
        except TRANSPORT_ERRORS as e:
            raise PolicyUploadFailed() from e

    def create_remote_config(self, session: RemoteSession) -> str:
        artifact = bundle.config_artifact(self.cache_path, session.remote_dir_path)
        try:
            return session.upload(artifact)
        except TRANSPORT_ERRORS as e:
            raise ConfigUploadFailed() from e

    def create_remote_handler(self, session: RemoteSession) -> str:
        # Building the artifact reads packaged data; only the upload is transport.
        artifact = bundle.handler_artifact()
        try:
            return session.upload(artifact)
        except TRANSPORT_ERRORS as e:
            raise HandlerUploadFailed() from e

    def run_chef(self, session: RemoteSession, remote_config_path: str, remote_policy_path: str) -> CommandResult:
        commands = self.target_host.commands
        command = commands.run_chef(
            session.remote_dir_path,
            posixpath.basename(remote_config_path),
            posixpath.basename(remote_policy_path),
        )
        logger.info(f"[{self._host_label()}] Running chef-client in {session.remote_dir_path}")
        return self.target_host.run_command(command)

    def _transition(self, state: SessionState) -> None:
        logger.debug(f"[{self._host_label()}] {self.state.value} -> {state.value}")
        self.states.append(state)

    def _host_label(self) -> str:
        return str(getattr(self.target_host, "hostname", "target"))


def converge(
    target_host: Any,
    local_policy_path: str | Path,
    cache_path: Optional[str] = None,
    config: Optional[ChefRunConfig] = None,
    notification_handler: Optional[NotificationHandler] = None,
    telemetry_sink: Optional[TelemetrySink] = None,
) -> None:
    """
    Converge ``target_host`` with the policy bundle at ``local_policy_path``.

    Returns None on success.

    Raises:
        ConvergeError: Exactly one categorized error for a failed session.
        RemoteCommandFailed: If the remote directory or report cannot be removed.
        FileNotFoundError: If the local policy bundle does not exist.
    """
    action = ConvergeTarget(
        target_host,
        local_policy_path,
        cache_path=cache_path,
        config=config,
        telemetry_sink=telemetry_sink,
    )
    action.run(notification_handler)
