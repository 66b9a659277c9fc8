from pydantic import BaseModel, ConfigDict, Field

from ..core import DEFAULT_NODE_SCOPES
from ..errors import ValidationError


class ClusterSpec(BaseModel):
    """Desired state of a GKE cluster and its node pool."""

    model_config = ConfigDict(validate_assignment=True)

    project_id: str = ""
    zone: str = ""
    name: str = ""
    description: str = ""

    node_count: int = Field(default=0, ge=0, description="0 leaves the size unchanged")
    master_version: str = ""
    node_version: str = ""

    cluster_ipv4_cidr: str = ""
    network: str = ""
    subnetwork: str = ""
    locations: list[str] = Field(default_factory=list)

    http_load_balancing: bool = False
    horizontal_pod_autoscaling: bool = False
    kubernetes_dashboard: bool = False
    network_policy_config: bool = False
    legacy_abac: bool = False
    enable_alpha_feature: bool = False

    machine_type: str = ""
    disk_size_gb: int = 0
    image_type: str = ""
    oauth_scopes: list[str] = Field(default_factory=lambda: list(DEFAULT_NODE_SCOPES))

    credential_path: str = ""
    credential_content: str = ""
    temp_credential_path: str = ""

    node_pool_id: str = ""

    def validate_location(self) -> None:
        if not self.project_id:
            raise ValidationError("project ID is required")
        if not self.zone:
            raise ValidationError("zone is required")

    def validate_identity(self) -> None:
        """Raises ValidationError unless project, zone and name are all set."""
        self.validate_location()
        if not self.name:
            raise ValidationError("cluster name is required")


class NodePoolSummary(BaseModel):
    name: str
    status: str
    machine_type: str
    version: str
    autoscaling: bool = False


class ClusterSummary(BaseModel):
    name: str
    status: str
    master_version: str
    node_pools: list[NodePoolSummary] = Field(default_factory=list)
