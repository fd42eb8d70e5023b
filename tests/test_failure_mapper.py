import pytest

from chefrun.errors import RemoteReportUnavailable, RemoteRunFailed
from chefrun.failure_mapper import (
    FailureCategory,
    exception_text,
    map_failure,
    match_signature,
    raise_mapped_exception,
)


class TestMatchSignature:
    """Known chef-client exception lines map to closed categories."""

    def test_resource_had_an_error(self):
        cause = "file[/etc/motd] (base::default line 3) had an error: Errno::EACCES: Permission denied @ rb_sysopen"
        category, args = match_signature(cause)
        assert category is FailureCategory.RESOURCE_ERROR
        assert args == ("Permission denied @ rb_sysopen",)

    def test_invalid_action(self):
        cause = (
            "Chef::Exceptions::ValidationFailed: Option action must be equal to one of: "
            "nothing, install, upgrade, remove!  You passed :instal."
        )
        category, args = match_signature(cause)
        assert category is FailureCategory.INVALID_ACTION
        assert args == ("instal", "nothing, install, upgrade, remove")

    def test_validation_failed(self):
        category, args = match_signature("Chef::Exceptions::ValidationFailed: Option mode must be a String!")
        assert category is FailureCategory.INVALID_PROPERTY_VALUE
        assert args == ("Option mode must be a String!",)

    def test_name_error_for_cookbook(self):
        cause = "NameError: undefined local variable or method `pakage' for cookbook: base, recipe: default :Chef::Recipe"
        category, args = match_signature(cause)
        assert category is FailureCategory.UNKNOWN_RESOURCE
        assert args == ("pakage",)

    def test_no_method_for_cookbook(self):
        cause = "NoMethodError: undefined method `servce' for cookbook: base, recipe: default :Chef::Recipe"
        category, args = match_signature(cause)
        assert category is FailureCategory.UNKNOWN_RESOURCE
        assert args == ("servce",)

    def test_no_method_for_resource(self):
        cause = "NoMethodError: undefined method 'contnet' for Chef::Resource::File"
        category, args = match_signature(cause)
        assert category is FailureCategory.UNKNOWN_PROPERTY
        assert args == ("Chef::Resource::File", "contnet")

    def test_unrecognized_passes_raw_text(self):
        category, args = match_signature("Net::HTTPServerException: 500 Internal Server Error")
        assert category is FailureCategory.UNRECOGNIZED
        assert args == ("Net::HTTPServerException: 500 Internal Server Error",)


class TestExceptionText:
    """The report's exception field may take several shapes."""

    def test_none(self):
        assert exception_text(None) is None

    def test_blank_string(self):
        assert exception_text("   ") is None

    def test_mapping_with_class_and_message(self):
        assert exception_text({"class": "RuntimeError", "message": "boom"}) == "RuntimeError: boom"

    def test_mapping_with_message_only(self):
        assert exception_text({"message": "boom"}) == "boom"

    def test_mapping_without_known_keys(self):
        assert exception_text({"code": 3}) == '{"code": 3}'

    def test_other_types(self):
        assert exception_text(42) == "42"


class TestMapFailure:
    """map_failure always returns a typed error."""

    def test_report_unavailable(self):
        error = map_failure(None, "out", "err", report_available=False)
        assert isinstance(error, RemoteReportUnavailable)
        assert (error.stdout, error.stderr) == ("out", "err")
        assert "out" in error.message and "err" in error.message

    def test_structured_exception_is_matched(self):
        error = map_failure(
            {"class": "Chef::Exceptions::ValidationFailed", "message": "Option owner must be a String!"},
        )
        assert isinstance(error, RemoteRunFailed)
        assert error.category is FailureCategory.INVALID_PROPERTY_VALUE

    def test_missing_exception_uses_run_output(self):
        error = map_failure(None, "stdout text", "stderr text")
        assert isinstance(error, RemoteRunFailed)
        assert error.category is FailureCategory.UNRECOGNIZED
        assert "stderr text" in error.message

    def test_every_category_has_a_message(self):
        for category in FailureCategory:
            error = RemoteRunFailed(category, "a", "b")
            assert str(error).startswith(category.value + ": ")

    def test_raise_mapped_exception(self):
        with pytest.raises(RemoteRunFailed) as exc_info:
            raise_mapped_exception("Chef::Exceptions::ValidationFailed: bad", "o", "e")
        assert exc_info.value.id == "CHEFCCR004"
