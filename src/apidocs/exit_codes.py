"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~apidocs.exceptions.ApiDocsError` subclass.
Deployment pipelines can inspect the exit code to tell a rejected
documentation part from a flaky network without parsing stderr.

Example::

    $ apidocs apply examples/todo-api.docs.yaml
    $ echo $?
    6   # EXIT_TRANSIENT_PLATFORM -- safe to run again later
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""Invalid arguments, a malformed location key, or a malformed fragment."""

EXIT_PLATFORM_REJECTED = 5
"""The hosting platform rejected the request (4xx-equivalent)."""

EXIT_TRANSIENT_PLATFORM = 6
"""The hosting platform was unreachable, timed out, or throttled the call."""

EXIT_MANIFEST_ERROR = 7
"""The documentation manifest could not be read or parsed."""

EXIT_EXPORT_FAILED = 8
"""The merged OpenAPI export could not be produced."""
