from google.api_core import exceptions
from tenacity import retry_if_exception_type, stop_after_attempt, wait_exponential

# Shared retry configuration for read-only calls
# usage: @retry(**RETRY_CONFIG)
RETRY_CONFIG = {
    "retry": retry_if_exception_type(
        (
            exceptions.ServiceUnavailable,
            exceptions.DeadlineExceeded,
            exceptions.InternalServerError,
        )
    ),
    "stop": stop_after_attempt(3),
    "wait": wait_exponential(multiplier=1, min=4, max=10),
    "reraise": True,
}

STATUS_RUNNING = "RUNNING"

# Seconds between readiness polls
POLL_INTERVAL = 5

# Username sent in master_auth on create
MASTER_USERNAME = "admin"

CLOUD_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
MONITOR_WRITE_SCOPE = "https://www.googleapis.com/auth/monitoring.write"
STORAGE_READ_SCOPE = "https://www.googleapis.com/auth/devstorage.read_only"

DEFAULT_NODE_SCOPES = [CLOUD_SCOPE, MONITOR_WRITE_SCOPE, STORAGE_READ_SCOPE]
