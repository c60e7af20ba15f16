"""Exception hierarchy for apidocs.

All exceptions inherit from :class:`ApiDocsError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`apidocs.exit_codes`.
The top-level error handler in :func:`apidocs.app.main` catches
``ApiDocsError`` and exits with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Local validation errors (:class:`MalformedLocationKey`,
:class:`MalformedFragment`, :class:`InvalidExportRequest`) are raised before
any platform call is made. Platform errors are never retried here.

Subclass hierarchy::

    ApiDocsError (exit 1)
    +-- MalformedLocationKey      (exit 2)
    +-- MalformedFragment         (exit 2)
    +-- InvalidExportRequest      (exit 2)
    +-- ManifestError             (exit 7)
    +-- ConfigError               (exit 1)
    +-- PlatformError             (exit 5)
    |   +-- PlatformRejected      (exit 5)
    |   +-- TransientPlatformError (exit 6)
    +-- ExportFailed              (exit 8)
"""

from __future__ import annotations

from typing import Optional

from apidocs.exit_codes import (
    EXIT_EXPORT_FAILED,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_MANIFEST_ERROR,
    EXIT_PLATFORM_REJECTED,
    EXIT_TRANSIENT_PLATFORM,
)


class ApiDocsError(Exception):
    """Base exception for all apidocs errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`apidocs.exit_codes`. The entry point catches
    this exception type and calls ``sys.exit(exc.exit_code)``.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class MalformedLocationKey(ApiDocsError):
    """Raised when a location key carries fields its location type forbids or lacks required ones."""

    exit_code = EXIT_INVALID_USAGE


class MalformedFragment(ApiDocsError):
    """Raised when fragment properties are not a JSON-serialisable object."""

    exit_code = EXIT_INVALID_USAGE


class InvalidExportRequest(ApiDocsError):
    """Raised when an export is requested without an API id or stage."""

    exit_code = EXIT_INVALID_USAGE


class ManifestError(ApiDocsError):
    """Raised when a documentation manifest cannot be loaded or is inconsistent."""

    exit_code = EXIT_MANIFEST_ERROR


class ConfigError(ApiDocsError):
    """Raised for configuration problems (missing profiles, invalid JSON, no AWS credentials)."""

    exit_code = EXIT_GENERIC_FAILURE


class PlatformError(ApiDocsError):
    """Base class for errors reported by, or while talking to, the hosting platform.

    Args:
        message: Human-readable error description.
        status_code: HTTP status returned by the platform, if any.
        error_type: Platform error type (``x-amzn-ErrorType``), if any.
    """

    exit_code = EXIT_PLATFORM_REJECTED

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        error_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error_type = error_type


class PlatformRejected(PlatformError):
    """Raised when the platform rejects a request (bad properties, invalid location, missing API)."""

    exit_code = EXIT_PLATFORM_REJECTED


class TransientPlatformError(PlatformError):
    """Raised on network failures, timeouts, throttling, and platform 5xx responses.

    Retriable by the caller. The underlying call may or may not have taken
    effect on the platform.
    """

    exit_code = EXIT_TRANSIENT_PLATFORM


class ExportFailed(ApiDocsError):
    """Raised when the platform export fails. Wraps the platform error in ``cause``."""

    exit_code = EXIT_EXPORT_FAILED

    def __init__(self, message: str, cause: PlatformError):
        super().__init__(message)
        self.cause = cause
