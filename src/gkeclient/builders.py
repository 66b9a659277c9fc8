"""
Builders for the container_v1 request messages issued by the lifecycle client.
"""
from google.cloud import container_v1

from .core import MASTER_USERNAME
from .schemas.cluster import ClusterSpec


def location_path(spec: ClusterSpec) -> str:
    return f"projects/{spec.project_id}/locations/{spec.zone}"


def cluster_path(spec: ClusterSpec, name: str | None = None) -> str:
    return f"{location_path(spec)}/clusters/{name or spec.name}"


def node_pool_path(spec: ClusterSpec) -> str:
    return f"{cluster_path(spec)}/nodePools/{spec.node_pool_id}"


def build_node_config(spec: ClusterSpec) -> container_v1.NodeConfig:
    return container_v1.NodeConfig(
        machine_type=spec.machine_type,
        disk_size_gb=spec.disk_size_gb,
        image_type=spec.image_type,
        oauth_scopes=spec.oauth_scopes,
    )


def build_create_cluster_request(
    spec: ClusterSpec,
) -> container_v1.CreateClusterRequest:
    """
    Maps a ClusterSpec onto a CreateClusterRequest.
    The API models addons as `disabled` flags, so every enabled toggle
    in the spec is inverted here.
    """
    cluster = container_v1.Cluster(
        name=spec.name,
        description=spec.description,
        initial_cluster_version=spec.master_version,
        initial_node_count=spec.node_count,
        cluster_ipv4_cidr=spec.cluster_ipv4_cidr,
        enable_kubernetes_alpha=spec.enable_alpha_feature,
        addons_config=container_v1.AddonsConfig(
            http_load_balancing=container_v1.HttpLoadBalancing(
                disabled=not spec.http_load_balancing
            ),
            horizontal_pod_autoscaling=container_v1.HorizontalPodAutoscaling(
                disabled=not spec.horizontal_pod_autoscaling
            ),
            kubernetes_dashboard=container_v1.KubernetesDashboard(
                disabled=not spec.kubernetes_dashboard
            ),
            network_policy_config=container_v1.NetworkPolicyConfig(
                disabled=not spec.network_policy_config
            ),
        ),
        network=spec.network,
        subnetwork=spec.subnetwork,
        locations=spec.locations,
        legacy_abac=container_v1.LegacyAbac(enabled=spec.legacy_abac),
        master_auth=container_v1.MasterAuth(username=MASTER_USERNAME),
        node_config=build_node_config(spec),
    )
    return container_v1.CreateClusterRequest(
        parent=location_path(spec), cluster=cluster
    )


def build_master_update_request(
    spec: ClusterSpec,
) -> container_v1.UpdateClusterRequest:
    return container_v1.UpdateClusterRequest(
        name=cluster_path(spec),
        update=container_v1.ClusterUpdate(desired_master_version=spec.master_version),
    )


def build_node_pool_update_request(
    spec: ClusterSpec,
) -> container_v1.UpdateNodePoolRequest:
    return container_v1.UpdateNodePoolRequest(
        name=node_pool_path(spec),
        node_version=spec.node_version,
        image_type=spec.image_type,
    )


def build_set_size_request(
    spec: ClusterSpec,
) -> container_v1.SetNodePoolSizeRequest:
    return container_v1.SetNodePoolSizeRequest(
        name=node_pool_path(spec), node_count=spec.node_count
    )
