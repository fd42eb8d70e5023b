import json

import pytest

from chefrun.classifier import RunResultClassifier
from chefrun.errors import RemoteCommandFailed, RemoteReportUnavailable, RemoteRunFailed
from chefrun.failure_mapper import FailureCategory
from chefrun.types import CommandResult

CACHE = "/var/chef-workstation"


class TestRunResultClassifier:
    """Report fetch, delete and mapping after a run."""

    def test_success_makes_no_remote_calls(self, make_host):
        host = make_host()
        RunResultClassifier(host, CACHE).classify(CommandResult(0, "Converged 4 resources", ""))
        assert host.calls == []

    def test_reads_fixed_report_path(self, make_host):
        host = make_host(report_result=CommandResult(0, json.dumps({"exception": "x"}), ""))

        with pytest.raises(RemoteRunFailed):
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "", ""))

        assert host.calls[0] == ("run", "cat /var/chef-workstation/cache/run-report.json")
        assert host.calls[1] == ("run!", "rm -f /var/chef-workstation/cache/run-report.json")
        assert len(host.calls) == 2

    def test_unreadable_report(self, make_host):
        host = make_host(report_result=CommandResult(1, "", "No such file"))

        with pytest.raises(RemoteReportUnavailable) as exc_info:
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "run stdout", "run stderr"))

        assert exc_info.value.stdout == "run stdout"
        assert exc_info.value.stderr == "run stderr"
        assert host.calls_of("run!") == []

    def test_invalid_json_is_still_classified_and_deleted(self, make_host):
        host = make_host(report_result=CommandResult(0, "not json at all", ""))

        with pytest.raises(RemoteRunFailed) as exc_info:
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "", ""))

        assert exc_info.value.category is FailureCategory.UNRECOGNIZED
        assert "not json at all" in exc_info.value.message
        assert len(host.calls_of("run!")) == 1

    def test_non_mapping_json(self, make_host):
        host = make_host(report_result=CommandResult(0, "[1, 2]", ""))

        with pytest.raises(RemoteRunFailed):
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "", ""))

    def test_report_without_exception(self, make_host):
        host = make_host(report_result=CommandResult(0, json.dumps({"status": "failed"}), ""))

        with pytest.raises(RemoteRunFailed) as exc_info:
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "", "fatal: out of disk"))

        assert "out of disk" in exc_info.value.message
        assert len(host.calls_of("run!")) == 1

    def test_report_delete_failure_propagates(self, make_host):
        host = make_host(
            report_result=CommandResult(0, json.dumps({"exception": "x"}), ""),
            fail_commands={"rm -f"},
        )

        with pytest.raises(RemoteCommandFailed):
            RunResultClassifier(host, CACHE).classify(CommandResult(1, "", ""))
