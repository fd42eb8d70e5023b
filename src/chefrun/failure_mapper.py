"""Map remote chef-client exception text onto a closed set of failure categories."""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional, Tuple

from chefrun.errors import ConvergeError, RemoteReportUnavailable, RemoteRunFailed

logger = logging.getLogger(__name__)


class FailureCategory(Enum):
    """Known remote failure categories. Values are the operator-facing error ids."""

    UNRECOGNIZED = "CHEFCCR000"
    RESOURCE_ERROR = "CHEFCCR002"
    INVALID_ACTION = "CHEFCCR003"
    INVALID_PROPERTY_VALUE = "CHEFCCR004"
    UNKNOWN_RESOURCE = "CHEFCCR005"
    UNKNOWN_PROPERTY = "CHEFCCR006"


@dataclass(frozen=True)
class Signature:
    category: FailureCategory
    pattern: re.Pattern
    extract: Callable[[re.Match], Tuple[str, ...]]


# Evaluated in order; the first match wins.
SIGNATURES: Tuple[Signature, ...] = (
    # Some invalid property values, among others.
    Signature(
        FailureCategory.RESOURCE_ERROR,
        re.compile(r".*had an error:(.*:)\s+(.*$)", re.MULTILINE),
        lambda m: (m.group(2),),
    ),
    # Invalid action: a special case of an invalid property value.
    Signature(
        FailureCategory.INVALID_ACTION,
        re.compile(
            r".*Chef::Exceptions::ValidationFailed:\s+Option action must be equal to one of:"
            r"\s+(.*)!\s+You passed :(.*)\."
        ),
        lambda m: (m.group(2), m.group(1)),
    ),
    Signature(
        FailureCategory.INVALID_PROPERTY_VALUE,
        re.compile(r".*Chef::Exceptions::ValidationFailed:\s+(.*)"),
        lambda m: (m.group(1),),
    ),
    # Invalid resource type, in most cases.
    Signature(
        FailureCategory.UNKNOWN_RESOURCE,
        re.compile(r".*NameError: undefined local variable or method [`'](.+?)' for cookbook.+"),
        lambda m: (m.group(1),),
    ),
    Signature(
        FailureCategory.UNKNOWN_RESOURCE,
        re.compile(r".*NoMethodError: undefined method [`'](.+?)' for cookbook.+"),
        lambda m: (m.group(1),),
    ),
    # Property not available on the resource.
    Signature(
        FailureCategory.UNKNOWN_PROPERTY,
        re.compile(r".*NoMethodError: undefined method [`'](.+?)' for (.+)"),
        lambda m: (m.group(2), m.group(1)),
    ),
)


def exception_text(exception: Any) -> Optional[str]:
    """
    Normalize the report's ``exception`` field to a single string.

    The field may be absent, a string, or a mapping with ``class`` and
    ``message`` keys. Anything else is serialized so it can still be shown.
    """
    if exception is None:
        return None
    if isinstance(exception, str):
        return exception.strip() or None
    if isinstance(exception, dict):
        cls = exception.get("class") or exception.get("type")
        message = exception.get("message")
        if cls and message:
            return f"{cls}: {message}"
        if message or cls:
            return str(message or cls)
        return json.dumps(exception, sort_keys=True, default=str)
    return str(exception)


def match_signature(cause: str) -> Tuple[FailureCategory, Tuple[str, ...]]:
    """Return the category and message arguments for ``cause``."""
    for signature in SIGNATURES:
        match = signature.pattern.search(cause)
        if match:
            return signature.category, tuple(arg.strip() for arg in signature.extract(match))
    return FailureCategory.UNRECOGNIZED, (cause,)


def map_failure(
    exception: Any,
    stdout: str = "",
    stderr: str = "",
    report_available: bool = True,
) -> ConvergeError:
    """
    Build the ConvergeError describing a failed remote run.

    Args:
        exception: The report's ``exception`` field, if any.
        stdout: Captured stdout of the original run.
        stderr: Captured stderr of the original run.
        report_available: False when the report could not be read at all.

    Returns:
        The categorized error. Never raises for unexpected report content.
    """
    if not report_available:
        return RemoteReportUnavailable(stdout, stderr)

    cause = exception_text(exception)
    if cause is None:
        detail = (stderr or stdout or "the run report recorded no exception").strip()
        return RemoteRunFailed(FailureCategory.UNRECOGNIZED, detail, stdout=stdout, stderr=stderr)

    category, args = match_signature(cause)
    if category is FailureCategory.UNRECOGNIZED:
        logger.debug(f"No known signature matched remote exception: {cause}")
    return RemoteRunFailed(category, *args, stdout=stdout, stderr=stderr)


def raise_mapped_exception(
    exception: Any,
    stdout: str = "",
    stderr: str = "",
    report_available: bool = True,
) -> None:
    raise map_failure(exception, stdout, stderr, report_available)
