import contextlib
from pathlib import Path

from .schemas.cluster import ClusterSpec


def remove_temp_credentials(spec: ClusterSpec) -> None:
    """Best-effort removal of the spec's temporary credential file."""
    if not spec.temp_credential_path:
        return
    with contextlib.suppress(OSError):
        Path(spec.temp_credential_path).unlink(missing_ok=True)
    spec.temp_credential_path = ""
