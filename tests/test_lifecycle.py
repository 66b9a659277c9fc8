import pytest
from google.api_core.exceptions import (
    AlreadyExists,
    NotFound,
    PermissionDenied,
    RetryError,
    ServiceUnavailable,
)
from google.auth.exceptions import DefaultCredentialsError

from gkeclient.errors import (
    CredentialsError,
    PollError,
    RemoteAPIError,
    ValidationError,
)
from gkeclient.lifecycle import (
    _fetch_clusters,
    create_cluster,
    delete_cluster,
    list_clusters,
    update_cluster,
)
from gkeclient.schemas.cluster import ClusterSpec


def make_spec(**kwargs):
    fields = {"project_id": "test-project", "zone": "us-central1-a", "name": "demo"}
    fields.update(kwargs)
    return ClusterSpec(**fields)


def make_pool(mocker, name):
    pool = mocker.Mock()
    pool.name = name
    return pool


@pytest.fixture
def client(mocker):
    # Every poll sees a running resource
    client = mocker.Mock()
    client.get_cluster.return_value.status.name = "RUNNING"
    client.get_cluster.return_value.node_pools = [make_pool(mocker, "default-pool")]
    client.get_node_pool.return_value.status.name = "RUNNING"
    return client


def called_methods(client):
    return [c[0] for c in client.method_calls]


def test_list_clusters_mock(mocker):
    # Mock the Client Getter
    mock_get = mocker.patch("gkeclient.lifecycle.get_gke_client")
    mock_client = mock_get.return_value

    mock_cluster = mocker.Mock()
    mock_cluster.name = "test-cluster"
    mock_cluster.status.name = "RUNNING"
    mock_cluster.current_master_version = "1.27.3-gke.100"

    mock_np = make_pool(mocker, "default-pool")
    mock_np.status.name = "RUNNING"
    mock_np.config.machine_type = "e2-medium"
    mock_np.version = "1.27.3-gke.100"
    mock_np.autoscaling.enabled = True

    mock_client.list_clusters.return_value = mocker.Mock(clusters=[mock_cluster])
    mock_client.list_node_pools.return_value = mocker.Mock(node_pools=[mock_np])

    clusters = list_clusters(ClusterSpec(project_id="test-project", zone="us-west1-a"))

    assert len(clusters) == 1
    c = clusters[0]
    assert c.name == "test-cluster"
    assert c.status == "RUNNING"
    assert c.master_version == "1.27.3-gke.100"
    assert len(c.node_pools) == 1
    assert c.node_pools[0].machine_type == "e2-medium"
    assert c.node_pools[0].autoscaling is True

    mock_client.list_clusters.assert_called_once_with(
        parent="projects/test-project/locations/us-west1-a"
    )
    mock_client.list_node_pools.assert_called_once_with(
        parent="projects/test-project/locations/us-west1-a/clusters/test-cluster"
    )


def test_list_clusters_requires_location(mocker):
    mock_get = mocker.patch("gkeclient.lifecycle.get_gke_client")

    with pytest.raises(ValidationError, match="zone is required"):
        list_clusters(ClusterSpec(project_id="test-project"))

    mock_get.assert_not_called()


def test_list_clusters_error_not_retried(client):
    client.list_clusters.side_effect = PermissionDenied("no access")

    with pytest.raises(RemoteAPIError) as exc_info:
        list_clusters(make_spec(), client=client)

    assert exc_info.value.code == 403
    assert client.list_clusters.call_count == 1


@pytest.mark.parametrize("missing", ["project_id", "zone", "name"])
def test_create_validates_before_network(mocker, missing):
    mock_get = mocker.patch("gkeclient.lifecycle.get_gke_client")

    with pytest.raises(ValidationError):
        create_cluster(make_spec(**{missing: ""}))

    mock_get.assert_not_called()
    assert mock_get.return_value.method_calls == []


def test_create_cluster_waits_for_running(client):
    create_cluster(make_spec(http_load_balancing=True), client=client, interval=0)

    assert called_methods(client) == ["create_cluster", "get_cluster"]
    request = client.create_cluster.call_args.kwargs["request"]
    assert request.cluster.addons_config.http_load_balancing.disabled is False


def test_create_cluster_already_exists_still_polls(client):
    client.create_cluster.side_effect = AlreadyExists("cluster demo exists")

    # Twice: the second call sees the cluster created by the first
    create_cluster(make_spec(), client=client, interval=0)
    create_cluster(make_spec(), client=client, interval=0)

    assert client.create_cluster.call_count == 2
    assert client.get_cluster.call_count == 2


def test_create_cluster_other_error_is_fatal(client):
    client.create_cluster.side_effect = PermissionDenied("denied")

    with pytest.raises(RemoteAPIError) as exc_info:
        create_cluster(make_spec(), client=client, interval=0)

    assert exc_info.value.code == 403
    assert isinstance(exc_info.value.cause, PermissionDenied)
    client.get_cluster.assert_not_called()


def test_create_cluster_poll_failure(client):
    client.get_cluster.side_effect = NotFound("gone")

    with pytest.raises(PollError):
        create_cluster(make_spec(), client=client, interval=0)


def test_update_resolves_node_pool_first(client):
    spec = make_spec(node_version="1.29.1-gke.1589000")

    update_cluster(spec, client=client, interval=0)

    assert called_methods(client) == ["get_cluster", "update_node_pool", "get_node_pool"]
    assert spec.node_pool_id == "default-pool"
    request = client.update_node_pool.call_args.kwargs["request"]
    assert request.name.endswith("/clusters/demo/nodePools/default-pool")
    assert request.node_version == "1.29.1-gke.1589000"


def test_update_rejects_ambiguous_node_pool(mocker, client):
    client.get_cluster.return_value.node_pools = [
        make_pool(mocker, "pool-a"),
        make_pool(mocker, "pool-b"),
    ]

    with pytest.raises(ValidationError, match="node pool ID is required"):
        update_cluster(make_spec(node_count=3), client=client, interval=0)

    client.set_node_pool_size.assert_not_called()


def test_update_all_fields_in_order(client):
    spec = make_spec(
        master_version="1.29.1-gke.1589000",
        node_version="1.29.1-gke.1589000",
        node_count=3,
        node_pool_id="workers",
    )

    update_cluster(spec, client=client, interval=0)

    assert called_methods(client) == [
        "update_cluster",
        "get_cluster",
        "update_node_pool",
        "get_node_pool",
        "set_node_pool_size",
        "get_cluster",
    ]
    update = client.update_cluster.call_args.kwargs["request"]
    assert update.update.desired_master_version == "1.29.1-gke.1589000"
    resize = client.set_node_pool_size.call_args.kwargs["request"]
    assert resize.name.endswith("/nodePools/workers")
    assert resize.node_count == 3


def test_update_master_only_skips_node_pool_lookup(client):
    update_cluster(make_spec(master_version="1.29.1"), client=client, interval=0)

    assert called_methods(client) == ["update_cluster", "get_cluster"]


def test_update_error_stops_remaining_steps(client):
    client.update_cluster.side_effect = PermissionDenied("denied")
    spec = make_spec(master_version="1.29.1", node_count=3, node_pool_id="workers")

    with pytest.raises(RemoteAPIError):
        update_cluster(spec, client=client, interval=0)

    client.set_node_pool_size.assert_not_called()


def test_delete_cluster(client, tmp_path):
    key = tmp_path / "key.json"
    key.write_text("{}")
    spec = make_spec(temp_credential_path=str(key))

    delete_cluster(spec, client=client)

    client.delete_cluster.assert_called_once_with(
        name="projects/test-project/locations/us-central1-a/clusters/demo"
    )
    assert not key.exists()


def test_delete_missing_cluster_succeeds(client, tmp_path):
    key = tmp_path / "key.json"
    key.write_text("{}")
    client.delete_cluster.side_effect = NotFound("no cluster demo")
    spec = make_spec(temp_credential_path=str(key))

    delete_cluster(spec, client=client)

    assert not key.exists()
    assert spec.temp_credential_path == ""


def test_delete_other_error_is_fatal(client, tmp_path):
    key = tmp_path / "key.json"
    key.write_text("{}")
    client.delete_cluster.side_effect = PermissionDenied("denied")

    with pytest.raises(RemoteAPIError):
        delete_cluster(make_spec(temp_credential_path=str(key)), client=client)

    assert key.exists()


def test_inline_credentials_never_touch_disk(mocker):
    mock_mkstemp = mocker.patch("tempfile.mkstemp")
    mock_from_info = mocker.patch(
        "gkeclient.clients.service_account.Credentials.from_service_account_info"
    )
    mock_client_cls = mocker.patch("gkeclient.clients.container_v1.ClusterManagerClient")
    mock_client_cls.return_value.get_cluster.return_value.status.name = "RUNNING"
    spec = make_spec(credential_content='{"private_key": "secret"}')

    create_cluster(spec, interval=0)

    assert mock_from_info.call_args[0][0] == {"private_key": "secret"}
    mock_client_cls.assert_called_once_with(credentials=mock_from_info.return_value)
    mock_mkstemp.assert_not_called()
    assert spec.temp_credential_path == ""


def test_malformed_inline_credentials(mocker):
    mock_client_cls = mocker.patch("gkeclient.clients.container_v1.ClusterManagerClient")

    with pytest.raises(CredentialsError):
        create_cluster(make_spec(credential_content="not json"), interval=0)

    mock_client_cls.assert_not_called()


def test_missing_default_credentials(mocker):
    mocker.patch(
        "gkeclient.lifecycle.get_gke_client",
        side_effect=DefaultCredentialsError("no credentials found"),
    )

    with pytest.raises(CredentialsError, match="no credentials found"):
        list_clusters(make_spec())


def test_list_clusters_retries_transient_error(mocker, client):
    # Skip the exponential wait between attempts
    mock_sleep = mocker.patch.object(_fetch_clusters.retry, "sleep")
    client.list_clusters.side_effect = [
        ServiceUnavailable("try again"),
        mocker.Mock(clusters=[]),
    ]

    assert list_clusters(make_spec(), client=client) == []
    assert client.list_clusters.call_count == 2
    assert mock_sleep.call_count == 1


def test_create_client_retry_deadline_is_remote_error(client):
    client.create_cluster.side_effect = RetryError(
        "Timeout of 20.0s exceeded", ServiceUnavailable("unavailable")
    )

    with pytest.raises(RemoteAPIError) as exc_info:
        create_cluster(make_spec(), client=client, interval=0)

    assert exc_info.value.code is None
    assert isinstance(exc_info.value.cause, RetryError)
    client.get_cluster.assert_not_called()


def test_delete_client_retry_deadline_is_remote_error(client):
    client.delete_cluster.side_effect = RetryError(
        "Timeout of 20.0s exceeded", ServiceUnavailable("unavailable")
    )

    with pytest.raises(RemoteAPIError):
        delete_cluster(make_spec(), client=client)
