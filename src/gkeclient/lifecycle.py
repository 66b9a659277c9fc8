"""
Cluster Lifecycle Client: list, create, update and delete GKE clusters.

Mutating calls return a long-running Operation; every create/update waits
for the affected resource to report RUNNING before returning.
"""
import threading
from typing import Any

from google.api_core.exceptions import AlreadyExists, NotFound
from tenacity import retry

from .builders import (
    build_create_cluster_request,
    build_master_update_request,
    build_node_pool_update_request,
    build_set_size_request,
    cluster_path,
    location_path,
)
from .clients import get_gke_client, get_gke_client_from_info
from .core import POLL_INTERVAL, RETRY_CONFIG
from .credentials import remove_temp_credentials
from .errors import (
    REMOTE_ERRORS,
    CredentialsError,
    RemoteAPIError,
    ValidationError,
)
from .logger import logger
from .poller import wait_for_cluster, wait_for_node_pool
from .schemas.cluster import ClusterSpec, ClusterSummary, NodePoolSummary


def _client_for(spec: ClusterSpec, client: Any | None) -> Any:
    if client is not None:
        return client
    try:
        # Inline key content stays in memory, never on disk
        if spec.credential_content and not spec.credential_path:
            return get_gke_client_from_info(spec.credential_content)
        return get_gke_client(spec.credential_path)
    except (*REMOTE_ERRORS, OSError, ValueError) as e:
        raise CredentialsError(f"Could not initialize GKE client: {e}") from e


def _describe(operation: Any) -> str:
    return f"operation {operation.name} ({operation.status.name})"


@retry(**RETRY_CONFIG)  # type: ignore[call-overload, untyped-decorator]
def _fetch_clusters(client: Any, parent: str) -> Any:
    return client.list_clusters(parent=parent)


@retry(**RETRY_CONFIG)  # type: ignore[call-overload, untyped-decorator]
def _fetch_node_pools(client: Any, parent: str) -> Any:
    return client.list_node_pools(parent=parent)


def list_clusters(spec: ClusterSpec, *, client: Any | None = None) -> list[ClusterSummary]:
    """
    Lists all clusters in the spec's project and zone, with their node pools.
    A single response page is exhaustive for this API.
    """
    spec.validate_location()
    client = _client_for(spec, client)

    try:
        response = _fetch_clusters(client, location_path(spec))
    except REMOTE_ERRORS as e:
        raise RemoteAPIError(f"Failed to list clusters: {e}", e) from e

    results = []
    for cluster in response.clusters:
        try:
            pools = _fetch_node_pools(client, cluster_path(spec, cluster.name))
        except REMOTE_ERRORS as e:
            raise RemoteAPIError(
                f"Failed to list node pools for cluster {cluster.name}: {e}", e
            ) from e

        node_pools = [
            NodePoolSummary(
                name=np.name,
                status=str(np.status.name),
                machine_type=np.config.machine_type,
                version=np.version,
                autoscaling=bool(np.autoscaling and np.autoscaling.enabled),
            )
            for np in pools.node_pools
        ]
        results.append(
            ClusterSummary(
                name=cluster.name,
                status=str(cluster.status.name),
                master_version=cluster.current_master_version,
                node_pools=node_pools,
            )
        )

    return results


def create_cluster(
    spec: ClusterSpec,
    *,
    client: Any | None = None,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> None:
    """
    Creates the cluster and waits for it to run.
    A cluster that already exists counts as created; the wait still happens.
    """
    spec.validate_identity()
    client = _client_for(spec, client)

    request = build_create_cluster_request(spec)
    logger.debug(f"Cluster request: {request}")

    try:
        operation = client.create_cluster(request=request)
    except AlreadyExists:
        logger.info(f"Cluster {spec.name} already exists")
    except REMOTE_ERRORS as e:
        raise RemoteAPIError(f"Failed to create cluster {spec.name}: {e}", e) from e
    else:
        logger.info(
            f"Cluster {spec.name} create is called for project {spec.project_id} "
            f"and zone {spec.zone}: {_describe(operation)}"
        )

    wait_for_cluster(client, spec, interval=interval, timeout=timeout, cancel=cancel)


def resolve_node_pool(spec: ClusterSpec, client: Any) -> str:
    """
    Fills in spec.node_pool_id from the live cluster when it is unset.
    Only a cluster with exactly one node pool is resolved; otherwise the
    caller has to name the pool.
    """
    if spec.node_pool_id:
        return spec.node_pool_id

    try:
        cluster = client.get_cluster(name=cluster_path(spec))
    except REMOTE_ERRORS as e:
        raise RemoteAPIError(f"Failed to get cluster {spec.name}: {e}", e) from e

    names = [np.name for np in cluster.node_pools]
    if not names:
        raise ValidationError(f"cluster {spec.name} has no node pools")
    if len(names) > 1:
        raise ValidationError(
            f"cluster {spec.name} has {len(names)} node pools "
            f"({', '.join(names)}); node pool ID is required"
        )

    spec.node_pool_id = names[0]
    logger.debug(f"Resolved node pool {spec.node_pool_id} for cluster {spec.name}")
    return spec.node_pool_id


def update_cluster(
    spec: ClusterSpec,
    *,
    client: Any | None = None,
    interval: float = POLL_INTERVAL,
    timeout: float | None = None,
    cancel: threading.Event | None = None,
) -> None:
    """
    Applies master version, node version and node count changes, in that
    order, skipping any field left unset. Each change waits for convergence
    before the next one is issued.
    """
    spec.validate_identity()
    client = _client_for(spec, client)
    wait = {"interval": interval, "timeout": timeout, "cancel": cancel}

    logger.info(
        f"Updating cluster {spec.name}. MasterVersion: {spec.master_version}, "
        f"NodeVersion: {spec.node_version}, NodeCount: {spec.node_count}"
    )

    if spec.node_version or spec.node_count:
        resolve_node_pool(spec, client)

    if spec.master_version:
        logger.info(f"Updating master to {spec.master_version} version")
        try:
            operation = client.update_cluster(request=build_master_update_request(spec))
        except REMOTE_ERRORS as e:
            raise RemoteAPIError(f"Failed to update cluster {spec.name}: {e}", e) from e
        logger.info(
            f"Cluster {spec.name} update is called for project {spec.project_id} "
            f"and zone {spec.zone}: {_describe(operation)}"
        )
        wait_for_cluster(client, spec, **wait)

    if spec.node_version:
        logger.info(f"Updating node to {spec.node_version} version")
        try:
            operation = client.update_node_pool(
                request=build_node_pool_update_request(spec)
            )
        except REMOTE_ERRORS as e:
            raise RemoteAPIError(
                f"Failed to update node pool {spec.node_pool_id}: {e}", e
            ) from e
        logger.info(
            f"Node pool {spec.node_pool_id} update is called for cluster "
            f"{spec.name}: {_describe(operation)}"
        )
        wait_for_node_pool(client, spec, **wait)

    if spec.node_count:
        logger.info(f"Updating node size to {spec.node_count}")
        try:
            operation = client.set_node_pool_size(request=build_set_size_request(spec))
        except REMOTE_ERRORS as e:
            raise RemoteAPIError(
                f"Failed to resize node pool {spec.node_pool_id}: {e}", e
            ) from e
        logger.info(
            f"Node pool {spec.node_pool_id} size change is called for cluster "
            f"{spec.name}: {_describe(operation)}"
        )
        wait_for_cluster(client, spec, **wait)


def delete_cluster(spec: ClusterSpec, *, client: Any | None = None) -> None:
    """
    Deletes the cluster. A cluster that does not exist counts as deleted.
    The spec's temporary credential file is removed afterwards.
    """
    spec.validate_identity()
    client = _client_for(spec, client)

    logger.info(
        f"Removing cluster {spec.name} from project {spec.project_id}, zone {spec.zone}"
    )
    try:
        operation = client.delete_cluster(name=cluster_path(spec))
    except NotFound:
        logger.info(f"Cluster {spec.name} doesn't exist")
    except REMOTE_ERRORS as e:
        raise RemoteAPIError(f"Failed to delete cluster {spec.name}: {e}", e) from e
    else:
        logger.info(f"Cluster {spec.name} delete is called: {_describe(operation)}")

    remove_temp_credentials(spec)
