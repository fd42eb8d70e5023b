"""Target host transport: the narrow interface the orchestrator talks to."""
from __future__ import annotations

import logging
from typing import Optional

from chefrun import os_commands
from chefrun.errors import RemoteCommandFailed
from chefrun.ssh import SSHClient
from chefrun.types import CommandResult

logger = logging.getLogger(__name__)


class TargetHost:
    """A connected remote machine that commands and files can be sent to."""

    def __init__(self, ssh_client: SSHClient, base_os: str = "linux") -> None:
        if ssh_client is None:
            raise ValueError("ssh_client is required")
        self.ssh_client = ssh_client
        self.commands = os_commands.for_os(base_os)

    @classmethod
    def from_credentials(
        cls,
        host: str,
        port: int = 22,
        username: str = "root",
        private_key_path: Optional[str] = None,
        password: Optional[str] = None,
        base_os: str = "linux",
        command_timeout: int = 3600,
    ) -> "TargetHost":
        client = SSHClient(
            host=host,
            port=port,
            username=username,
            private_key_path=private_key_path,
            password=password,
            command_timeout=command_timeout,
        )
        return cls(client, base_os=base_os)

    def __enter__(self) -> "TargetHost":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.disconnect()

    @property
    def hostname(self) -> str:
        return self.ssh_client.host

    @property
    def base_os(self) -> str:
        return self.commands.name

    def connect(self) -> None:
        self.ssh_client.connect()

    def disconnect(self) -> None:
        self.ssh_client.disconnect()

    def run_command(self, command: str) -> CommandResult:
        """Run ``command`` and return its result. A non-zero exit is not an error."""
        exit_status, stdout, stderr = self.ssh_client.execute(command)
        return CommandResult(exit_status=exit_status, stdout=stdout, stderr=stderr)

    def run_command_or_fail(self, command: str) -> CommandResult:
        """Run ``command``; raise RemoteCommandFailed if it exits non-zero."""
        result = self.run_command(command)
        if not result.ok:
            logger.error(f"[{self.hostname}] Command failed ({result.exit_status}): {command}")
            raise RemoteCommandFailed(command, result.exit_status, result.stderr)
        return result

    def upload_file(self, local_path: str, remote_path: str) -> None:
        self.ssh_client.upload_file(str(local_path), remote_path)

    def create_temp_directory(self) -> str:
        """Create a fresh, uniquely named directory on the target and return its raw path."""
        result = self.run_command_or_fail(self.commands.mktemp())
        return result.stdout.strip()

    def delete_directory(self, path: str) -> None:
        self.run_command_or_fail(self.commands.delete_folder(path))
