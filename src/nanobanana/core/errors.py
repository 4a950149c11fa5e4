"""Error taxonomy for the relay pipeline.

Every failure the pipeline can surface to a caller is a :class:`RelayError`
carrying the HTTP status the API layer should answer with.  Failures caused
by a non-2xx upstream response carry that upstream status; everything else
carries 500.

========================  ======  ==========================================
Class                     Status  Raised when
========================  ======  ==========================================
ValidationError           400     Bad content type or empty prompt
NotFoundError             404     No route matches method + path
UpstreamSubmissionError   varies  Submission rejected or malformed
UpstreamPollError         varies  Status endpoint returned non-2xx
GenerationFailedError     500     Upstream reported failure / empty URL
UpstreamTimeoutError      500     Upstream said the session timed out
PollTimeoutError          500     Local wall-clock budget exhausted
DownloadError             varies  Generated image could not be fetched
UploadError               varies  File host rejected or garbled the upload
========================  ======  ==========================================
"""

from __future__ import annotations


class RelayError(Exception):
    """Base class for all pipeline failures.

    Attributes:
        message: Human-readable message returned as ``{"error": message}``.
        status_code: HTTP status the API layer responds with.
    """

    default_status: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code if status_code is not None else self.default_status


class ValidationError(RelayError):
    default_status = 400


class NotFoundError(RelayError):
    default_status = 404


class UpstreamSubmissionError(RelayError):
    pass


class UpstreamPollError(RelayError):
    pass


class GenerationFailedError(RelayError):
    pass


class GenerationTimeoutError(RelayError):
    """Generation did not finish in time (see subclasses for which side)."""


class UpstreamTimeoutError(GenerationTimeoutError):
    """The upstream status payload reported a server-side session timeout."""


class PollTimeoutError(GenerationTimeoutError):
    """The local poll loop exceeded its wall-clock budget."""


class DownloadError(RelayError):
    pass


class UploadError(RelayError):
    pass
