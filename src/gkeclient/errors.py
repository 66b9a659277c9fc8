from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError

# Everything the GAPIC client raises for a failed call, including its own
# RetryError once the built-in retry deadline runs out
REMOTE_ERRORS = (GoogleAPIError, GoogleAuthError)


class GKEClientError(Exception):
    """Base class for all errors raised by gkeclient."""


class ValidationError(GKEClientError):
    """The cluster spec is missing a field required by the operation."""


class CredentialsError(GKEClientError):
    """No usable credentials for the GKE client."""


class RemoteAPIError(GKEClientError):
    """A call to the GKE control plane failed."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause
        self.code = getattr(cause, "code", None)


class PollError(GKEClientError):
    """Fetching a resource status failed while waiting for it to converge."""


class PollTimeout(GKEClientError):
    """The resource did not reach RUNNING before the deadline."""

    def __init__(self, message: str, last_status: str | None = None):
        super().__init__(message)
        self.last_status = last_status


class PollCancelled(PollTimeout):
    """The wait was aborted through its cancel event."""
