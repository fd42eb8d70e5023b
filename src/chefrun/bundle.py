"""Artifacts staged into the remote working directory before a converge."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Iterator, Optional

from chefrun.types import StagedArtifact

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "workstation.rb"
HANDLER_FILE_NAME = "reporter.rb"
REPORTER_TEMPLATE = Path(__file__).parent / "resources" / HANDLER_FILE_NAME


def render_workstation_config(cache_path: str, remote_dir_path: str) -> str:
    """
    Render the chef-client configuration used for the remote run.

    The reporter is registered as both a report handler and an exception
    handler, so the run leaves a JSON report behind whether it converges or
    raises.

    Args:
        cache_path: Cache and repo path on the target. Required.
        remote_dir_path: Session directory the config is uploaded into. Required.

    Returns:
        Ruby source for workstation.rb.
    """
    if not cache_path or not isinstance(cache_path, str):
        raise ValueError("cache_path must be a non-empty string")
    if not remote_dir_path or not isinstance(remote_dir_path, str):
        raise ValueError("remote_dir_path must be a non-empty string")

    return (
        f"# chefrun session directory: {remote_dir_path}\n"
        "local_mode true\n"
        "color false\n"
        f'cache_path "{cache_path}"\n'
        f'chef_repo_path "{cache_path}"\n'
        'require_relative "reporter"\n'
        "reporter = ChefRun::Reporter.new\n"
        "report_handlers << reporter\n"
        "exception_handlers << reporter\n"
    )


def reporter_script(template: Optional[Path] = None) -> str:
    """Return the bundled report handler source."""
    path = template or REPORTER_TEMPLATE
    if not path.is_file():
        raise FileNotFoundError(f"Reporter template not found: {path}")
    return path.read_text(encoding="utf-8")


def policy_artifact(local_policy_path: str | Path) -> StagedArtifact:
    path = Path(local_policy_path)
    return StagedArtifact(remote_name=path.name, local_path=path)


def config_artifact(cache_path: str, remote_dir_path: str) -> StagedArtifact:
    return StagedArtifact(
        remote_name=CONFIG_FILE_NAME,
        content=render_workstation_config(cache_path, remote_dir_path),
    )


def handler_artifact() -> StagedArtifact:
    return StagedArtifact(remote_name=HANDLER_FILE_NAME, content=reporter_script())


@contextmanager
def staged_file(artifact: StagedArtifact) -> Iterator[Path]:
    """
    Yield a local path holding the artifact's bytes.

    Rendered content is written to a temporary file that is removed on exit,
    whether or not the upload that uses it succeeded. Artifacts that already
    live on disk are yielded as-is and never deleted.
    """
    if artifact.local_path is not None:
        yield artifact.local_path
        return

    temp_path: Optional[Path] = None
    try:
        suffix = Path(artifact.remote_name).suffix
        with NamedTemporaryFile("w", delete=False, suffix=suffix, encoding="utf-8") as tmp:
            tmp.write(artifact.content)
            temp_path = Path(tmp.name)
        yield temp_path
    finally:
        if temp_path and temp_path.exists():
            temp_path.unlink()
            logger.debug(f"Removed local staging file {temp_path}")
