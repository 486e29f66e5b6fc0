# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Configuration classes, cluster models, and config display."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.panel import Panel

from devcluster import console
from devcluster.constants import (
    CLUSTER_CREATE_TIMEOUT_SECONDS,
    CLUSTER_DELETE_TIMEOUT_SECONDS,
    DEFAULT_CLUSTER_CREATE_MAX_RETRIES,
    DEFAULT_CLUSTER_NAME,
    DEFAULT_K3S_IMAGE,
    DEFAULT_MAX_AGENTS,
    DEFAULT_NAMESPACE,
    DEFAULT_PROMPT_ATTEMPTS,
    DEFAULT_REGISTRY_NAME,
    IDLE_TICK_SECONDS,
    K3D_CONTEXT_PREFIX,
    K3D_WAIT_TIMEOUT,
    NODE_READY_TIMEOUT_SECONDS,
    QUERY_TIMEOUT_SECONDS,
    TOOL_DEVSPACE,
)

_NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


# ============================================================================
# Configuration classes
# ============================================================================

class ClusterConfig(BaseSettings):
    """Dev cluster configuration, auto-loaded from DEV_CLUSTER_* env vars.

    Attributes:
        cluster_name: Name of the k3d cluster.
        registry_name: Name of the registry k3d creates alongside the cluster.
        registry_port: Host port for the registry, or None to let k3d pick one.
        namespace: Development namespace bound to the DevSpace context.
        api_port: Kubernetes API server host port, or None for k3d's choice.
        lb_port: Load balancer port mapping (host:container), or None.
        k3s_image: K3s Docker image, or None for k3d's bundled default.
        max_agents: Upper bound accepted for the agent node count.
        prompt_attempts: How many times to ask for the node count.
        max_retries: Maximum cluster creation attempts.
        replace_existing: Delete a cluster with the same name instead of failing.
        wait_for_nodes: Wait for every node to report Ready after creation.
        k3d_wait_timeout: Value passed to ``k3d cluster create --timeout``.
        create_timeout: Seconds before a ``k3d cluster create`` process is killed.
        delete_timeout: Seconds before a ``k3d cluster delete`` process is killed.
        query_timeout: Seconds allowed for kubectl queries and devspace calls.
        node_ready_timeout: Seconds allowed for nodes to become Ready.
        tick_seconds: Idle wait granularity while the session is ready.
    """

    model_config = SettingsConfigDict(env_prefix="DEV_CLUSTER_", extra="ignore")

    cluster_name: str = Field(default=DEFAULT_CLUSTER_NAME, pattern=_NAME_PATTERN)
    registry_name: str = Field(default=DEFAULT_REGISTRY_NAME, pattern=_NAME_PATTERN)
    registry_port: int | None = Field(default=None, ge=1, le=65535)
    namespace: str = Field(default=DEFAULT_NAMESPACE, pattern=_NAME_PATTERN)
    api_port: int | None = Field(default=None, ge=1, le=65535)
    lb_port: str | None = Field(default=None, pattern=r"^\d+:\d+$")
    k3s_image: str | None = DEFAULT_K3S_IMAGE
    max_agents: int = Field(default=DEFAULT_MAX_AGENTS, ge=0)
    prompt_attempts: int = Field(default=DEFAULT_PROMPT_ATTEMPTS, ge=1, le=10)
    max_retries: int = Field(default=DEFAULT_CLUSTER_CREATE_MAX_RETRIES, ge=1, le=10)
    replace_existing: bool = False
    wait_for_nodes: bool = True
    k3d_wait_timeout: str = Field(default=K3D_WAIT_TIMEOUT, pattern=r"^\d+[smh]$")
    create_timeout: float = Field(default=CLUSTER_CREATE_TIMEOUT_SECONDS, gt=0)
    delete_timeout: float = Field(default=CLUSTER_DELETE_TIMEOUT_SECONDS, gt=0)
    query_timeout: float = Field(default=QUERY_TIMEOUT_SECONDS, gt=0)
    node_ready_timeout: float = Field(default=NODE_READY_TIMEOUT_SECONDS, gt=0)
    tick_seconds: float = Field(default=IDLE_TICK_SECONDS, gt=0)


# ============================================================================
# Cluster models
# ============================================================================

@dataclass(frozen=True)
class ClusterSpec:
    """What to provision.

    Attributes:
        name: k3d cluster name.
        agent_count: Number of agent (worker) nodes besides the server node.
        registry_name: Name of the registry created with the cluster.
    """

    name: str
    agent_count: int
    registry_name: str

    @classmethod
    def from_config(cls, cfg: ClusterConfig, agent_count: int) -> ClusterSpec:
        return cls(name=cfg.cluster_name, agent_count=agent_count, registry_name=cfg.registry_name)


@dataclass(frozen=True)
class ClusterHandle:
    """Reference to a running cluster, valid from creation until deletion.

    Attributes:
        name: k3d cluster name.
        agent_count: Number of agent nodes the cluster was created with, or None
            when the handle refers to a cluster created by an earlier session.
        registry_name: Name of the registry created with the cluster.
    """

    name: str
    agent_count: int | None
    registry_name: str

    @property
    def kube_context(self) -> str:
        """kubeconfig context k3d writes for this cluster."""
        return f"{K3D_CONTEXT_PREFIX}{self.name}"


@dataclass(frozen=True)
class NamespaceBinding:
    """Development namespace and the optional tool that binds a context to it."""

    namespace: str = DEFAULT_NAMESPACE
    context_tool: str | None = TOOL_DEVSPACE


# ============================================================================
# Config resolution
# ============================================================================

def resolve_config(
    cluster_name: str | None = None,
    registry_name: str | None = None,
    namespace: str | None = None,
) -> ClusterConfig:
    """Merge CLI overrides, environment variables, and defaults.

    Resolution priority: CLI arguments > DEV_CLUSTER_* environment variables > defaults.

    Args:
        cluster_name: CLI override for the cluster name, or None.
        registry_name: CLI override for the registry name, or None.
        namespace: CLI override for the development namespace, or None.

    Returns:
        The resolved configuration.
    """
    overrides: dict = {}
    if cluster_name is not None:
        overrides["cluster_name"] = cluster_name
    if registry_name is not None:
        overrides["registry_name"] = registry_name
    if namespace is not None:
        overrides["namespace"] = namespace
    # Init kwargs take precedence over env vars and are validated, unlike model_copy.
    return ClusterConfig(**overrides)


# ============================================================================
# Display
# ============================================================================

def display_config(cfg: ClusterConfig) -> None:
    """Print the settings that shape the cluster.

    Args:
        cfg: Resolved cluster configuration.
    """
    console.print(Panel.fit("Configuration", style="bold blue"))
    console.print(f"  cluster_name    : {cfg.cluster_name}")
    console.print(f"  registry_name   : {cfg.registry_name}")
    console.print(f"  registry_port   : {cfg.registry_port or 'auto'}")
    console.print(f"  namespace       : {cfg.namespace}")
    if cfg.api_port is not None:
        console.print(f"  api_port        : {cfg.api_port}")
    if cfg.lb_port is not None:
        console.print(f"  lb_port         : {cfg.lb_port}")
    console.print(f"  k3s_image       : {cfg.k3s_image or 'k3d default'}")
