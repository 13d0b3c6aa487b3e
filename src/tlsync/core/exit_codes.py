"""Standardized exit codes for the tlsync command line."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Standardized exit codes for all tlsync commands.

    These codes are used consistently so that cron jobs and CI wrappers can
    tell a clean run from a partial one.
    """

    OK = 0
    """Successful execution (end of timeline, cap reached or cancelled)."""

    HTTP_ERROR = 2
    """The run aborted on a non rate-limit API failure after saving the cursor."""

    IO_ERROR = 4
    """File I/O operations failed before the run could start."""

    CONFIG_ERROR = 5
    """Configuration error (bad credentials, invalid flags or YAML)."""
