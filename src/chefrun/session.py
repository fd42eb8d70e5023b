"""Lifetime of one remote working directory."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

from chefrun.bundle import staged_file
from chefrun.types import StagedArtifact

logger = logging.getLogger(__name__)


class RemoteSession:
    """
    One convergence attempt's remote directory.

    Use as a context manager: the directory is created on entry and deleted
    exactly once on exit, whichever step failed in between. A session is
    never reused; entering it twice is an error.
    """

    def __init__(self, target_host: Any, local_policy_path: str | Path) -> None:
        if target_host is None:
            raise ValueError("target_host is required")
        self.target_host = target_host
        self.local_policy_path = Path(local_policy_path)
        self.commands = target_host.commands
        self.remote_dir_path: Optional[str] = None
        # Unescaped form for SFTP, which takes paths verbatim.
        self.upload_dir_path: Optional[str] = None
        self.torn_down = False
        self._used = False

    def __enter__(self) -> "RemoteSession":
        if self._used:
            raise RuntimeError("RemoteSession cannot be reused; create a new one per attempt")
        self._used = True
        self.upload_dir_path = self.target_host.create_temp_directory().strip()
        self.remote_dir_path = self.commands.escape_path(self.upload_dir_path)
        logger.debug(f"Created remote directory {self.remote_dir_path}")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.remote_dir_path is None:
            return
        path, self.remote_dir_path = self.remote_dir_path, None
        self.upload_dir_path = None
        try:
            self.target_host.run_command_or_fail(self.commands.delete_folder(path))
        except Exception as delete_error:
            if exc is None:
                raise
            # A staging failure is already propagating and takes precedence.
            logger.error(f"Failed to remove remote directory {path}: {delete_error}")
        else:
            self.torn_down = True
            logger.debug(f"Removed remote directory {path}")

    def remote_path(self, name: str) -> str:
        """Upload destination for ``name``; not shell-escaped."""
        if self.upload_dir_path is None:
            raise RuntimeError("Remote directory has not been created")
        return self.commands.join(self.upload_dir_path, name)

    def upload(self, artifact: StagedArtifact) -> str:
        """Upload ``artifact`` into the session directory and return its remote path."""
        remote_path = self.remote_path(artifact.remote_name)
        with staged_file(artifact) as local_path:
            self.target_host.upload_file(str(local_path), remote_path)
        return remote_path
