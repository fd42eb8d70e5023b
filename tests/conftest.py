import itertools
from pathlib import Path

import pytest

from chefrun.errors import RemoteCommandFailed
from chefrun.os_commands import OSCommands
from chefrun.types import CommandResult

_dir_counter = itertools.count(1)


class FakeTargetHost:
    """Records every remote call in order; responses are configured per test."""

    def __init__(
        self,
        hostname="node1.example.com",
        run_result=None,
        report_result=None,
        upload_errors=None,
        fail_commands=None,
        commands=None,
    ):
        self.hostname = hostname
        self.commands = commands or OSCommands()
        self.run_result = run_result or CommandResult(0, "Converged 4 resources", "")
        self.report_result = report_result or CommandResult(1, "", "No such file")
        self.upload_errors = upload_errors or {}
        self.fail_commands = set(fail_commands or ())
        self.calls = []
        self.uploaded = {}
        self.local_upload_paths = []
        self.connected = False

    def connect(self):
        self.connected = True

    def disconnect(self):
        self.connected = False

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.disconnect()

    def create_temp_directory(self):
        self.calls.append(("create_temp_directory",))
        if "mktemp" in self.fail_commands:
            raise RemoteCommandFailed("mktemp", 1, "read-only file system")
        return f"  /tmp/chef_{next(_dir_counter):06d}\n"

    def upload_file(self, local_path, remote_path):
        name = remote_path.rsplit("/", 1)[-1]
        self.calls.append(("upload", name))
        self.local_upload_paths.append(Path(local_path))
        if name in self.upload_errors:
            raise self.upload_errors[name]
        self.uploaded[name] = Path(local_path).read_text(encoding="utf-8")

    def run_command(self, command):
        self.calls.append(("run", command))
        if "chef-client" in command:
            return self.run_result
        if command.startswith("cat "):
            return self.report_result
        return CommandResult(0, "", "")

    def run_command_or_fail(self, command):
        self.calls.append(("run!", command))
        for marker in self.fail_commands:
            if marker != "mktemp" and command.startswith(marker):
                raise RemoteCommandFailed(command, 1, "permission denied")
        return CommandResult(0, "", "")

    def calls_of(self, kind):
        return [c for c in self.calls if c[0] == kind]

    def index_of(self, kind, prefix):
        for i, call in enumerate(self.calls):
            if call[0] == kind and call[1].startswith(prefix):
                return i
        raise AssertionError(f"No {kind} call starting with {prefix!r}: {self.calls}")


@pytest.fixture
def policy_file(tmp_path):
    path = tmp_path / "base-policy-1a2b3c.tgz"
    path.write_text("policy archive bytes", encoding="utf-8")
    return path


@pytest.fixture
def make_host():
    return FakeTargetHost
