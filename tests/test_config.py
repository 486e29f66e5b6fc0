"""Tests for configuration resolution and cluster models."""

import pytest
from pydantic import ValidationError

from devcluster.config import ClusterConfig, ClusterHandle, ClusterSpec, resolve_config
from devcluster.utils import registry_container_name, resolve_registry_repos


def test_defaults():
    cfg = ClusterConfig()
    assert cfg.cluster_name == "dev"
    assert cfg.registry_name == "dev-registry"
    assert cfg.namespace == "devspace"
    assert cfg.replace_existing is False
    assert cfg.max_agents == 100


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("DEV_CLUSTER_CLUSTER_NAME", "scratch")
    monkeypatch.setenv("DEV_CLUSTER_REPLACE_EXISTING", "true")
    monkeypatch.setenv("DEV_CLUSTER_REGISTRY_PORT", "5001")

    cfg = ClusterConfig()
    assert cfg.cluster_name == "scratch"
    assert cfg.replace_existing is True
    assert cfg.registry_port == 5001


def test_cli_overrides_win_over_env(monkeypatch):
    monkeypatch.setenv("DEV_CLUSTER_CLUSTER_NAME", "from-env")
    cfg = resolve_config(cluster_name="from-cli", namespace="work")
    assert cfg.cluster_name == "from-cli"
    assert cfg.namespace == "work"


@pytest.mark.parametrize("field, value", [
    ("cluster_name", "Dev"),
    ("registry_name", "-registry"),
    ("namespace", "dev space"),
    ("registry_port", 70000),
    ("lb_port", "8080"),
    ("k3d_wait_timeout", "soon"),
])
def test_invalid_values_are_rejected(field, value):
    with pytest.raises(ValidationError):
        ClusterConfig(**{field: value})


def test_spec_and_handle():
    spec = ClusterSpec.from_config(ClusterConfig(cluster_name="scratch"), 2)
    assert spec == ClusterSpec(name="scratch", agent_count=2, registry_name="dev-registry")
    assert ClusterHandle(name="scratch", agent_count=2, registry_name="r").kube_context == "k3d-scratch"


def test_registry_naming():
    assert registry_container_name("dev-registry") == "k3d-dev-registry"
    assert registry_container_name("k3d-dev-registry") == "k3d-dev-registry"
    assert resolve_registry_repos("dev-registry", None) is None
    assert resolve_registry_repos("dev-registry", 5001) == ("localhost:5001", "k3d-dev-registry:5001")
