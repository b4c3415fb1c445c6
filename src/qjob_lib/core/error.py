# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

"""
Exception types used throughout qjob.

Every fatal qjob failure derives from `QJobError` and carries an exit code
used by `qjob` commands to report failures consistently. `IncompleteJobWarning`
is the only non-fatal diagnostic: it is issued when a job leaves its scope
before all of its tasks are done.
"""

from .config import CFG


class QJobError(Exception):
    """Common exception type for all qjob errors."""

    exit_code = CFG.exit_codes.default


class AuthenticationError(QJobError):
    """Raised when the cluster rejects the credentials and no more attempts are allowed."""

    exit_code = CFG.exit_codes.authentication


class TransportError(QJobError):
    """Raised when a remote command or a file transfer fails."""

    pass


class SubmissionError(QJobError):
    """
    Raised when a batch submission produces a malformed or short response.

    The raw output of the remote submission script is stored in `output`.
    """

    def __init__(self, message: str, output: list[str] | None = None):
        self.output = list(output or [])
        if self.output:
            message = f"{message}\n\n" + "\n".join(self.output)
        super().__init__(message)


class StatusParseError(QJobError):
    """Raised when a scheduler reports a state code that has no canonical state."""

    pass


class UnsafeCleanupError(QJobError):
    """Raised when a cleanup would remove a directory outside of the jobs root."""

    pass


class IncompleteJobWarning(UserWarning):
    """Issued when a job is finalized before all of its tasks are done."""

    pass
