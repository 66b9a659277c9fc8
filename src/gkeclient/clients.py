from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

from google.cloud import container_v1
from google.oauth2 import service_account

from .core import CLOUD_SCOPE
from .logger import logger

# Shared Client Registry (Lazy-loaded and cached per credential file)


@lru_cache(maxsize=4)
def get_gke_client(credential_path: str = "") -> Any:
    """
    Returns a ClusterManagerClient.
    Without an explicit key file, google-auth resolves application default
    credentials (GOOGLE_APPLICATION_CREDENTIALS, gcloud login, metadata server).
    """
    if not credential_path:
        return container_v1.ClusterManagerClient()

    logger.debug(f"Using service account key {credential_path}")
    credentials = service_account.Credentials.from_service_account_file(
        credential_path, scopes=[CLOUD_SCOPE]
    )
    return container_v1.ClusterManagerClient(credentials=credentials)


def get_gke_client_from_info(credential_content: str) -> Any:
    """Builds an uncached client from inline service account key JSON."""
    credentials = service_account.Credentials.from_service_account_info(
        json.loads(credential_content), scopes=[CLOUD_SCOPE]
    )
    return container_v1.ClusterManagerClient(credentials=credentials)
