import argparse
import logging
import sys
from importlib.metadata import version

from rich.console import Console
from rich.table import Table

from . import lifecycle
from .errors import GKEClientError
from .logger import logger
from .schemas.cluster import ClusterSpec, ClusterSummary

OPERATIONS = ["list", "create", "update", "delete"]


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or more, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gke-client",
        description="gke-client: GKE cluster lifecycle tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List clusters and node pools in a zone
  gke-client --project my-project --zone us-central1-a

  # Create a two node cluster and wait until it is running
  gke-client --project my-project --zone us-central1-a --ops create \\
      --name demo --node-count 2 --http-load-balancing

  # Upgrade nodes of the cluster's only node pool
  gke-client --project my-project --zone us-central1-a --ops update \\
      --name demo --node-version 1.29.1-gke.1589000

  # Delete a cluster (succeeds if it is already gone)
  gke-client --project my-project --zone us-central1-a --ops delete --name demo
""",
    )
    try:
        ver = version("gke-client")
    except Exception:
        ver = "unknown"
    parser.add_argument("--version", action="version", version=f"gke-client v{ver}")

    parser.add_argument("--project", help="Project ID")
    parser.add_argument("--zone", help="Compute zone")
    parser.add_argument(
        "--ops",
        choices=OPERATIONS,
        default="list",
        help="Operation to run (default: list)",
    )

    cluster = parser.add_argument_group("cluster")
    cluster.add_argument("--name", default="", help="Cluster name")
    cluster.add_argument("--description", default="", help="Cluster description")
    cluster.add_argument(
        "--node-count",
        type=non_negative_int,
        default=0,
        help="Initial node count on create, node pool size on update",
    )
    cluster.add_argument("--master-version", default="", help="Kubernetes master version")
    cluster.add_argument("--node-version", default="", help="Kubernetes node version")
    cluster.add_argument(
        "--node-pool",
        default="",
        help="Node pool to update (default: the cluster's only node pool)",
    )
    cluster.add_argument("--cluster-ipv4-cidr", default="", help="Pod IP range")
    cluster.add_argument("--network", default="", help="VPC network")
    cluster.add_argument("--subnetwork", default="", help="VPC subnetwork")
    cluster.add_argument(
        "--locations", nargs="+", default=[], help="Zones for the cluster's nodes"
    )
    cluster.add_argument("--machine-type", default="", help="Node machine type")
    cluster.add_argument(
        "--disk-size-gb", type=non_negative_int, default=0, help="Node disk size"
    )
    cluster.add_argument("--image-type", default="", help="Node image type")

    addons = parser.add_argument_group("features")
    addons.add_argument("--http-load-balancing", action="store_true")
    addons.add_argument("--horizontal-pod-autoscaling", action="store_true")
    addons.add_argument("--kubernetes-dashboard", action="store_true")
    addons.add_argument("--network-policy", action="store_true")
    addons.add_argument("--legacy-abac", action="store_true")
    addons.add_argument("--enable-alpha", action="store_true")

    parser.add_argument(
        "--credentials",
        default="",
        help="Service account key file (default: application default "
        "credentials, which honour GOOGLE_APPLICATION_CREDENTIALS)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up waiting for RUNNING after this many seconds",
    )
    parser.add_argument("--json", action="store_true", help="Output list as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def spec_from_args(args: argparse.Namespace) -> ClusterSpec:
    return ClusterSpec(
        project_id=args.project,
        zone=args.zone,
        name=args.name,
        description=args.description,
        node_count=args.node_count,
        master_version=args.master_version,
        node_version=args.node_version,
        node_pool_id=args.node_pool,
        cluster_ipv4_cidr=args.cluster_ipv4_cidr,
        network=args.network,
        subnetwork=args.subnetwork,
        locations=args.locations,
        machine_type=args.machine_type,
        disk_size_gb=args.disk_size_gb,
        image_type=args.image_type,
        http_load_balancing=args.http_load_balancing,
        horizontal_pod_autoscaling=args.horizontal_pod_autoscaling,
        kubernetes_dashboard=args.kubernetes_dashboard,
        network_policy_config=args.network_policy,
        legacy_abac=args.legacy_abac,
        enable_alpha_feature=args.enable_alpha,
        credential_path=args.credentials,
    )


def render_clusters(clusters: list[ClusterSummary], console: Console) -> None:
    table = Table(title=f"GKE Clusters ({len(clusters)})")
    table.add_column("Cluster", style="cyan")
    table.add_column("Status")
    table.add_column("Master")
    table.add_column("Pool", style="green")
    table.add_column("Pool Status")
    table.add_column("Machine Type")
    table.add_column("Node Version")
    table.add_column("Autoscaling")

    for c in clusters:
        if not c.node_pools:
            table.add_row(c.name, c.status, f"v{c.master_version}", "-", "", "", "", "")
        for i, np in enumerate(c.node_pools):
            table.add_row(
                c.name if i == 0 else "",
                c.status if i == 0 else "",
                f"v{c.master_version}" if i == 0 else "",
                np.name,
                np.status,
                np.machine_type,
                f"v{np.version}",
                "yes" if np.autoscaling else "no",
            )

    console.print(table)


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    # argparse exits with status 2 on these errors
    if not args.project:
        parser.error("--project flag missing")
    if not args.zone:
        parser.error("--zone flag missing")

    if args.verbose:
        logger.setLevel(logging.DEBUG)

    out_console = Console()
    spec = spec_from_args(args)

    try:
        if args.ops == "list":
            clusters = lifecycle.list_clusters(spec)
            if args.json:
                out_console.print_json(data=[c.model_dump() for c in clusters])
            else:
                render_clusters(clusters, out_console)
        elif args.ops == "create":
            lifecycle.create_cluster(spec, timeout=args.timeout)
        elif args.ops == "update":
            lifecycle.update_cluster(spec, timeout=args.timeout)
        elif args.ops == "delete":
            lifecycle.delete_cluster(spec)
    except GKEClientError as e:
        logger.error(f"{args.ops.capitalize()} failed: {e}")
        sys.exit(1)
    except Exception as e:
        logger.exception(f"{args.ops.capitalize()} failed unexpectedly: {e}")
        sys.exit(1)


def cli() -> None:
    try:
        main()
    except KeyboardInterrupt:
        console = Console(stderr=True)
        console.print("\n[bold red]Operation cancelled by user.[/bold red]")
        sys.exit(130)


if __name__ == "__main__":
    cli()
