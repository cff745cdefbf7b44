"""
Custom exceptions for gcollect.

Every failure the controller can report is a subclass of GCollectException
carrying a machine-readable error code, technical details and an actionable
suggestion. The classes map onto how a run reacts to them:

- ConfigurationError: fatal, raised before any file is created
- DependencyError: a required external tool is missing (fatal)
- PrivilegeError: the run lacks permission to open performance counters
- StartError: the sampler failed to launch or produce output (fatal)
- CrashError: the sampler exited on its own mid-collection (finalize, then fail)
- StageError: symbol archive or bundle stage failed (warning only)
- UploadError: the bundle could not be uploaded (warning only)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Any


class ErrorCode(Enum):
    """Machine-readable error codes for gcollect errors."""
    # Configuration errors (1xx)
    CONFIG_MISSING_REQUIRED = "E101"
    CONFIG_INVALID_VALUE = "E102"
    CONFIG_FILE_NOT_FOUND = "E103"
    CONFIG_PARSE_ERROR = "E104"

    # Environment errors (2xx)
    DEPENDENCY_MISSING = "E201"
    INSUFFICIENT_PRIVILEGES = "E202"

    # Sampler errors (3xx)
    SAMPLER_LAUNCH_FAILED = "E301"
    SAMPLER_IMMEDIATE_EXIT = "E302"
    SAMPLER_NO_OUTPUT = "E303"
    SAMPLER_CRASHED = "E304"

    # Finalization errors (4xx)
    STAGE_SYMBOL_ARCHIVE = "E401"
    STAGE_BUNDLE = "E402"

    # Upload errors (5xx)
    UPLOAD_MISSING_FILE = "E501"
    UPLOAD_NETWORK = "E502"
    UPLOAD_AUTH = "E503"
    UPLOAD_BAD_REQUEST = "E504"
    UPLOAD_TOO_LARGE = "E505"
    UPLOAD_SERVER = "E506"
    UPLOAD_UNEXPECTED = "E507"

    # Internal errors (9xx)
    INTERNAL_ERROR = "E901"


@dataclass
class GCError:
    """
    Structured error information.

    Attributes:
        code: Machine-readable error code.
        message: User-facing error message.
        details: Technical details for debugging.
        suggestion: How to fix the issue.
        context: Additional context information.
    """
    code: ErrorCode
    message: str
    details: str = ""
    suggestion: str = ""
    context: dict = field(default_factory=dict)

    def __str__(self) -> str:
        lines = [f"[{self.code.value}] {self.message}"]
        if self.details:
            lines.append(f"  Details: {self.details}")
        if self.suggestion:
            lines.append(f"  Suggestion: {self.suggestion}")
        return "\n".join(lines)


class GCollectException(Exception):
    """Base exception class for gcollect."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INTERNAL_ERROR,
                 details: str = "", suggestion: str = "", **context):
        self.error = GCError(
            code=code,
            message=message,
            details=details,
            suggestion=suggestion,
            context=context
        )
        super().__init__(str(self.error))

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def suggestion(self) -> str:
        return self.error.suggestion


class ConfigurationError(GCollectException):
    """
    Raised when the run configuration is invalid.

    Examples:
        - Manual core mode without a core list
        - Upload enabled without an endpoint
        - Unreadable or malformed YAML config file
    """

    def __init__(self, message: str, parameter: str = None,
                 expected: Any = None, actual: Any = None,
                 suggestion: str = None,
                 code: ErrorCode = ErrorCode.CONFIG_INVALID_VALUE):
        details_parts = []
        if parameter:
            details_parts.append(f"Parameter: {parameter}")
        if expected is not None:
            details_parts.append(f"Expected: {expected}")
        if actual is not None:
            details_parts.append(f"Actual: {actual}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts),
            suggestion=suggestion or self._default_suggestion(code),
            parameter=parameter,
            expected=expected,
            actual=actual
        )

    @staticmethod
    def _default_suggestion(code: ErrorCode) -> str:
        suggestions = {
            ErrorCode.CONFIG_MISSING_REQUIRED: "Provide the required parameter on the command line or in the config file",
            ErrorCode.CONFIG_INVALID_VALUE: "Check the parameter value and correct it",
            ErrorCode.CONFIG_FILE_NOT_FOUND: "Verify the config file path exists",
            ErrorCode.CONFIG_PARSE_ERROR: "Check config file syntax (YAML format)",
        }
        return suggestions.get(code, "Check the configuration and try again")


class DependencyError(GCollectException):
    """Raised when a required external tool is missing."""

    def __init__(self, message: str, dependency: str = None,
                 install_cmd: str = None, suggestion: str = None,
                 code: ErrorCode = ErrorCode.DEPENDENCY_MISSING):
        details_parts = []
        if dependency:
            details_parts.append(f"Missing: {dependency}")
        if install_cmd:
            details_parts.append(f"Install with: {install_cmd}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts),
            suggestion=suggestion or f"Install the required dependency: {dependency}",
            dependency=dependency,
            install_cmd=install_cmd
        )


class PrivilegeError(GCollectException):
    """Raised when the controller cannot open system-wide performance counters."""

    def __init__(self, message: str, euid: int = None, suggestion: str = None):
        super().__init__(
            message=message,
            code=ErrorCode.INSUFFICIENT_PRIVILEGES,
            details=f"Effective UID: {euid}" if euid is not None else "",
            suggestion=suggestion or "Run as root (sudo) or grant CAP_PERFMON and CAP_SYS_ADMIN",
            euid=euid
        )


class StartFailure(Enum):
    """Why the sampler could not be brought up."""
    LAUNCH_FAILED = "launch-failed"
    IMMEDIATE_EXIT = "immediate-exit"
    NO_OUTPUT_FILE = "no-output-file"


_START_FAILURE_CODES = {
    StartFailure.LAUNCH_FAILED: ErrorCode.SAMPLER_LAUNCH_FAILED,
    StartFailure.IMMEDIATE_EXIT: ErrorCode.SAMPLER_IMMEDIATE_EXIT,
    StartFailure.NO_OUTPUT_FILE: ErrorCode.SAMPLER_NO_OUTPUT,
}


class StartError(GCollectException):
    """
    Raised when the sampler fails to start or produce its output file.

    No finalization is attempted after a StartError: there is no collected
    data to finalize.
    """

    def __init__(self, message: str, reason: StartFailure, command: str = None,
                 exit_code: int = None, suggestion: str = None):
        details_parts = [f"Reason: {reason.value}"]
        if command:
            cmd_display = command[:200] + "..." if len(command) > 200 else command
            details_parts.append(f"Command: {cmd_display}")
        if exit_code is not None:
            details_parts.append(f"Exit code: {exit_code}")

        super().__init__(
            message=message,
            code=_START_FAILURE_CODES[reason],
            details="; ".join(details_parts),
            suggestion=suggestion or self._default_suggestion(reason),
            reason=reason,
            command=command,
            exit_code=exit_code
        )
        self.reason = reason

    @staticmethod
    def _default_suggestion(reason: StartFailure) -> str:
        suggestions = {
            StartFailure.LAUNCH_FAILED: "Check that perf is installed and executable",
            StartFailure.IMMEDIATE_EXIT: (
                "Check the perf output above; unsupported events or a restrictive "
                "kernel.perf_event_paranoid setting are common causes"
            ),
            StartFailure.NO_OUTPUT_FILE: "Check that the output directory is writable",
        }
        return suggestions[reason]


class CrashError(GCollectException):
    """Raised when the sampler exits on its own during collection."""

    def __init__(self, message: str, exit_code: int = None, elapsed: float = None):
        details_parts = []
        if exit_code is not None:
            details_parts.append(f"Exit code: {exit_code}")
        if elapsed is not None:
            details_parts.append(f"Elapsed: {elapsed:.0f}s")

        super().__init__(
            message=message,
            code=ErrorCode.SAMPLER_CRASHED,
            details="; ".join(details_parts),
            suggestion="Data captured before the crash was preserved; check perf output and system logs",
            exit_code=exit_code,
            elapsed=elapsed
        )


class StageError(GCollectException):
    """Raised by a finalization stage. Never changes the exit code."""

    def __init__(self, message: str, stage: str, code: ErrorCode,
                 path: str = None, suggestion: str = None):
        details_parts = [f"Stage: {stage}"]
        if path:
            details_parts.append(f"Path: {path}")

        super().__init__(
            message=message,
            code=code,
            details="; ".join(details_parts),
            suggestion=suggestion or "The individual output files were left in place",
            stage=stage,
            path=path
        )
        self.stage = stage


class UploadFailure(Enum):
    """Classification of a failed upload."""
    MISSING_FILE = "missing-file"
    NETWORK = "network"
    AUTH = "auth"
    BAD_REQUEST = "bad-request"
    TOO_LARGE = "too-large"
    SERVER = "server"
    UNEXPECTED = "unexpected"


_UPLOAD_FAILURE_CODES = {
    UploadFailure.MISSING_FILE: ErrorCode.UPLOAD_MISSING_FILE,
    UploadFailure.NETWORK: ErrorCode.UPLOAD_NETWORK,
    UploadFailure.AUTH: ErrorCode.UPLOAD_AUTH,
    UploadFailure.BAD_REQUEST: ErrorCode.UPLOAD_BAD_REQUEST,
    UploadFailure.TOO_LARGE: ErrorCode.UPLOAD_TOO_LARGE,
    UploadFailure.SERVER: ErrorCode.UPLOAD_SERVER,
    UploadFailure.UNEXPECTED: ErrorCode.UPLOAD_UNEXPECTED,
}


class UploadError(GCollectException):
    """
    Raised when the bundle upload fails.

    Attributes:
        reason: UploadFailure classification.
        detail: Transport failure kind for NETWORK ('dns', 'connection',
            'timeout', 'other').
        status_code: HTTP status when the server answered.
        body: Response body (truncated) for BAD_REQUEST and UNEXPECTED.
    """

    def __init__(self, message: str, reason: UploadFailure, detail: str = None,
                 status_code: int = None, body: str = None, suggestion: str = None):
        details_parts = [f"Reason: {reason.value}"]
        if detail:
            details_parts.append(f"Detail: {detail}")
        if status_code is not None:
            details_parts.append(f"HTTP status: {status_code}")
        if body:
            body = body[:500] + "..." if len(body) > 500 else body
            details_parts.append(f"Response: {body}")

        super().__init__(
            message=message,
            code=_UPLOAD_FAILURE_CODES[reason],
            details="; ".join(details_parts),
            suggestion=suggestion or self._default_suggestion(reason),
            reason=reason,
            detail=detail,
            status_code=status_code
        )
        self.reason = reason
        self.detail = detail
        self.status_code = status_code
        self.body = body

    @staticmethod
    def _default_suggestion(reason: UploadFailure) -> str:
        suggestions = {
            UploadFailure.MISSING_FILE: "Check that bundling succeeded",
            UploadFailure.NETWORK: "Check network connectivity and the upload URL",
            UploadFailure.AUTH: "Check the upload token",
            UploadFailure.BAD_REQUEST: "Check the server response for details",
            UploadFailure.TOO_LARGE: "Shorten the collection or transfer the bundle manually",
            UploadFailure.SERVER: "Retry later or transfer the bundle manually",
            UploadFailure.UNEXPECTED: "Transfer the bundle manually",
        }
        return suggestions[reason]
