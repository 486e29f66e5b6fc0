"""Tests for node count parsing and the k3d provisioner."""

import pytest
import sh

from conftest import FakeK3d, FakeKubectl, make_error
from devcluster.config import ClusterConfig, ClusterSpec
from devcluster.errors import InputError, ProvisioningError
from devcluster.provisioner import K3dProvisioner, TeardownStatus, parse_agent_count


@pytest.mark.parametrize("text, expected", [("3", 3), (" 3\n", 3), ("0", 0), ("100", 100)])
def test_parse_agent_count_accepts_whole_numbers(text, expected):
    assert parse_agent_count(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "-1", "+3", "2.5", "3 nodes", "٣", "101"])
def test_parse_agent_count_rejects_everything_else(text):
    with pytest.raises(InputError):
        parse_agent_count(text)


def test_parse_agent_count_respects_custom_maximum():
    assert parse_agent_count("5", max_agents=5) == 5
    with pytest.raises(InputError, match="at most 5"):
        parse_agent_count("6", max_agents=5)


def test_create_passes_agents_and_registry(provisioner, k3d):
    handle = provisioner.create(ClusterSpec(name="dev", agent_count=3, registry_name="dev-registry"))

    assert handle.name == "dev"
    assert handle.agent_count == 3
    assert handle.kube_context == "k3d-dev"
    create = next(call for call in k3d.calls if call[:2] == ("cluster", "create"))
    assert create[2] == "dev"
    assert create[create.index("--agents") + 1] == "3"
    assert create[create.index("--registry-create") + 1] == "dev-registry"
    assert "--wait" in create
    assert "dev" in k3d.clusters


def test_create_with_zero_agents(provisioner, k3d):
    handle = provisioner.create(ClusterSpec(name="dev", agent_count=0, registry_name="dev-registry"))
    assert handle.agent_count == 0
    create = next(call for call in k3d.calls if call[:2] == ("cluster", "create"))
    assert create[create.index("--agents") + 1] == "0"


def test_create_optional_flags():
    cfg = ClusterConfig(
        wait_for_nodes=False, registry_port=5001, api_port=6550, lb_port="8080:80", k3s_image="rancher/k3s:v1",
    )
    args = K3dProvisioner(cfg, k3d=FakeK3d(), preflight=lambda: None)._create_args(
        ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry")
    )
    assert args[args.index("--registry-create") + 1] == "dev-registry:0.0.0.0:5001"
    assert args[args.index("--api-port") + 1] == "6550"
    assert args[args.index("--port") + 1] == "8080:80@loadbalancer"
    assert args[args.index("--image") + 1] == "rancher/k3s:v1"


@pytest.mark.parametrize("count", [-1, True, "3"])
def test_create_rejects_invalid_count_without_calling_k3d(provisioner, k3d, count):
    with pytest.raises(ProvisioningError):
        provisioner.create(ClusterSpec(name="dev", agent_count=count, registry_name="dev-registry"))
    assert k3d.calls == []


def test_create_reports_unavailable_facility(cfg, k3d):
    def preflight():
        raise ProvisioningError("Docker daemon is not reachable")

    provisioner = K3dProvisioner(cfg, k3d=k3d, preflight=preflight)
    with pytest.raises(ProvisioningError, match="Docker"):
        provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry"))
    assert k3d.calls == []


def test_create_refuses_existing_cluster(provisioner, k3d):
    k3d.clusters.add("dev")
    with pytest.raises(ProvisioningError, match="already exists"):
        provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry"))
    assert k3d.count("cluster", "create") == 0
    assert k3d.count("cluster", "delete") == 0


def test_create_replaces_existing_cluster_when_configured(k3d):
    k3d.clusters.add("dev")
    cfg = ClusterConfig(wait_for_nodes=False, replace_existing=True)
    provisioner = K3dProvisioner(cfg, k3d=k3d, preflight=lambda: None)

    provisioner.create(ClusterSpec(name="dev", agent_count=2, registry_name="dev-registry"))

    assert k3d.count("cluster", "delete") == 1
    assert k3d.count("cluster", "create") == 1
    assert "dev" in k3d.clusters


def test_create_failure_without_partial_cluster_deletes_nothing(provisioner, k3d):
    k3d.fail_create = make_error(b"docker: port is already allocated")

    with pytest.raises(ProvisioningError, match="port is already allocated"):
        provisioner.create(ClusterSpec(name="dev", agent_count=2, registry_name="dev-registry"))
    assert k3d.count("cluster", "delete") == 0


def test_create_failure_cleans_up_partial_cluster(provisioner, k3d):
    k3d.fail_create = make_error()
    k3d.leave_partial = True

    with pytest.raises(ProvisioningError):
        provisioner.create(ClusterSpec(name="dev", agent_count=2, registry_name="dev-registry"))
    assert k3d.count("cluster", "delete") == 1
    assert "dev" not in k3d.clusters


def test_create_failure_removes_leftover_registry(provisioner, k3d):
    k3d.fail_create = make_error(b"docker: port is already allocated")
    k3d.leave_registry = True

    with pytest.raises(ProvisioningError):
        provisioner.create(ClusterSpec(name="dev", agent_count=2, registry_name="dev-registry"))
    assert k3d.registries == set()
    assert k3d.count("cluster", "delete") == 0
    assert k3d.count("registry", "delete") == 1


def test_create_timeout_is_a_provisioning_error(provisioner, k3d):
    k3d.fail_create = sh.TimeoutException(-9, "k3d cluster create")
    with pytest.raises(ProvisioningError, match="timed out"):
        provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry"))


def test_create_retries_up_to_max_retries(k3d, monkeypatch):
    monkeypatch.setattr("devcluster.provisioner.CLUSTER_CREATE_RETRY_WAIT_SECONDS", 0)
    k3d.fail_create = make_error()
    cfg = ClusterConfig(wait_for_nodes=False, max_retries=3)
    provisioner = K3dProvisioner(cfg, k3d=k3d, preflight=lambda: None)

    with pytest.raises(ProvisioningError):
        provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry"))
    assert k3d.count("cluster", "create") == 3


def test_wait_for_nodes_failure_is_only_a_warning(k3d):
    kubectl = FakeKubectl(default=(False, "", "timed out waiting for the condition"))
    cfg = ClusterConfig(wait_for_nodes=True)
    provisioner = K3dProvisioner(cfg, k3d=k3d, kubectl=kubectl, preflight=lambda: None)

    handle = provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="dev-registry"))

    assert handle.name == "dev"
    (args, context), = kubectl.calls
    assert args[:2] == ("wait", "--for=condition=Ready")
    assert context == "k3d-dev"


def test_destroy_deletes_cluster_and_leftover_registry(provisioner, k3d):
    k3d.clusters.add("dev")
    k3d.registries.add("k3d-dev-registry")

    assert provisioner.destroy("dev") is TeardownStatus.DELETED
    assert "dev" not in k3d.clusters
    assert "k3d-dev-registry" not in k3d.registries


def test_destroy_missing_cluster_is_not_found(provisioner, k3d):
    assert provisioner.destroy("dev") is TeardownStatus.NOT_FOUND
    assert k3d.count("cluster", "delete") == 0


def test_destroy_missing_cluster_sweeps_leftover_registry(provisioner, k3d):
    k3d.registries.add("k3d-dev-registry")

    assert provisioner.destroy("dev") is TeardownStatus.NOT_FOUND
    assert k3d.registries == set()
    assert k3d.count("cluster", "delete") == 0


def test_destroy_removes_the_named_registry(provisioner, k3d):
    k3d.clusters.add("dev")
    k3d.registries.update({"k3d-dev-registry", "k3d-other-registry"})

    assert provisioner.destroy("dev", registry_name="other-registry") is TeardownStatus.DELETED
    assert k3d.registries == {"k3d-dev-registry"}


def test_replace_existing_removes_the_new_clusters_registry(k3d):
    k3d.clusters.add("dev")
    k3d.registries.add("k3d-scratch-registry")
    cfg = ClusterConfig(wait_for_nodes=False, replace_existing=True)
    provisioner = K3dProvisioner(cfg, k3d=k3d, preflight=lambda: None)

    provisioner.create(ClusterSpec(name="dev", agent_count=1, registry_name="scratch-registry"))

    assert ("registry", "delete", "k3d-scratch-registry") in k3d.calls


def test_destroy_twice_is_idempotent(provisioner, k3d):
    k3d.clusters.add("dev")
    assert provisioner.destroy("dev") is TeardownStatus.DELETED
    assert provisioner.destroy("dev") is TeardownStatus.NOT_FOUND
    assert k3d.count("cluster", "delete") == 1


def test_destroy_failure_raises(provisioner, k3d):
    k3d.clusters.add("dev")
    k3d.fail_delete = make_error(b"cannot remove container")
    with pytest.raises(ProvisioningError, match="cannot remove container"):
        provisioner.destroy("dev")


def test_exists_reports_unreadable_listing(cfg):
    provisioner = K3dProvisioner(cfg, k3d=lambda *args, timeout: "not json", preflight=lambda: None)
    with pytest.raises(ProvisioningError, match="Unexpected"):
        provisioner.exists("dev")
