"""Remote command builders for each supported target operating system.

The invoking machine and the target may use different path syntax and shells,
so every command string that reaches the target is built here.
"""
import posixpath
from typing import Dict, Type

REPORT_FILE = "run-report.json"


class OSCommands:
    """Command set for a POSIX target running bash."""

    name = "linux"
    ws_cache_path = "/var/chef-workstation"
    chef_client = "/opt/chef/bin/chef-client"

    def mktemp(self) -> str:
        return "bash -c 'd=$(mktemp -d -p${TMPDIR:-/tmp} chef_XXXXXX); chmod 700 $d; echo $d'"

    def escape_path(self, path: str) -> str:
        return path

    def join(self, *parts: str) -> str:
        return posixpath.join(*parts)

    def delete_folder(self, path: str) -> str:
        return f"rm -rf {path}"

    def run_chef(self, working_dir: str, config_name: str, policy_name: str) -> str:
        config = self.join(working_dir, config_name)
        policy = self.join(working_dir, policy_name)
        return (
            f"bash -c 'cd {working_dir}; "
            f"{self.chef_client} -z --config {config} --recipe-url {policy}'"
        )

    def report_path(self, cache_path: str) -> str:
        return self.join(cache_path, "cache", REPORT_FILE)

    def read_report(self, cache_path: str) -> str:
        return f"cat {self.report_path(cache_path)}"

    def delete_report(self, cache_path: str) -> str:
        return f"rm -f {self.report_path(cache_path)}"


class WindowsCommands(OSCommands):
    """Command set for a Windows target reached through PowerShell."""

    name = "windows"
    # Interpolated by Ruby on the target when embedded in workstation.rb.
    ws_cache_path = "#{ENV['APPDATA']}/chef-workstation"
    ps_cache_path = "$env:APPDATA/chef-workstation"
    chef_client = "chef-client"

    def mktemp(self) -> str:
        return (
            "$parent = [System.IO.Path]::GetTempPath(); "
            "[string] $name = [System.Guid]::NewGuid(); "
            "$tmp = New-Item -ItemType Directory -Path (Join-Path $parent \"chef_$name\"); "
            "$tmp.FullName"
        )

    def escape_path(self, path: str) -> str:
        return path.replace(" ", "` ")

    def delete_folder(self, path: str) -> str:
        return f"Remove-Item -Recurse -Force -Path {path}"

    def run_chef(self, working_dir: str, config_name: str, policy_name: str) -> str:
        config = self.join(working_dir, config_name)
        policy = self.join(working_dir, policy_name)
        return (
            f"Set-Location -Path {working_dir}; "
            f"{self.chef_client} -z --config {config} --recipe-url {policy}; "
            "exit $LASTEXITCODE"
        )

    def report_path(self, cache_path: str) -> str:
        if cache_path == self.ws_cache_path:
            cache_path = self.ps_cache_path
        return self.join(cache_path, "cache", REPORT_FILE)

    def read_report(self, cache_path: str) -> str:
        return f"Get-Content -Raw -Path {self.report_path(cache_path)}"

    def delete_report(self, cache_path: str) -> str:
        path = self.report_path(cache_path)
        return f"If (Test-Path {path}) {{ Remove-Item -Force -Path {path} }}"


_COMMANDS: Dict[str, Type[OSCommands]] = {
    OSCommands.name: OSCommands,
    WindowsCommands.name: WindowsCommands,
}


def for_os(base_os: str) -> OSCommands:
    """Return the command set for ``base_os`` (``linux`` or ``windows``)."""
    try:
        return _COMMANDS[base_os.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported target OS: {base_os}. Supported: {', '.join(sorted(_COMMANDS))}") from None
