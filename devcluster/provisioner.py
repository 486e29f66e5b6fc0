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

"""k3d cluster lifecycle: node count parsing, create, destroy."""

from __future__ import annotations

import json
from collections.abc import Callable
from enum import Enum

import docker
import sh
from rich.panel import Panel
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_fixed

from devcluster import console, logger
from devcluster.config import ClusterConfig, ClusterHandle, ClusterSpec
from devcluster.constants import (
    CLUSTER_CREATE_RETRY_WAIT_SECONDS,
    DEFAULT_MAX_AGENTS,
    TOOL_K3D,
)
from devcluster.errors import InputError, ProvisioningError
from devcluster.utils import (
    command_error_message,
    registry_container_name,
    require_command,
    resolve_registry_repos,
    run_kubectl,
)

_SH_ERRORS = (sh.ErrorReturnCode, sh.TimeoutException, sh.CommandNotFound)


class TeardownStatus(str, Enum):
    """Outcome of a destroy call."""

    DELETED = "deleted"
    NOT_FOUND = "not-found"


# ============================================================================
# Node count input
# ============================================================================

def parse_agent_count(text: str, max_agents: int = DEFAULT_MAX_AGENTS) -> int:
    """Parse free-text operator input into an agent node count.

    Args:
        text: Raw input line.
        max_agents: Largest count accepted.

    Returns:
        The agent count.

    Raises:
        InputError: If the text is not a non-negative integer no larger than *max_agents*.
    """
    value = text.strip()
    if not value:
        raise InputError("Node count is required (e.g. 3)")
    # int() would also accept "+3", " 3_0" and similar; only plain digits are counts.
    if not value.isdigit() or not value.isascii():
        raise InputError(f"Node count must be a non-negative whole number, got '{value}'")
    count = int(value)
    if count > max_agents:
        raise InputError(f"Node count must be at most {max_agents}, got {count}")
    return count


# ============================================================================
# Facility access
# ============================================================================

def run_k3d(*args: str, timeout: float) -> str:
    """Run a k3d command and return its output.

    k3d runs in its own session so a terminal CTRL+C reaches only this
    process, never an in-flight create or delete.

    Raises:
        sh.ErrorReturnCode: If k3d exits non-zero.
        sh.TimeoutException: If k3d runs longer than *timeout* seconds.
        sh.CommandNotFound: If k3d is not installed.
    """
    return str(sh.k3d(*args, _timeout=timeout, _new_session=True))


def check_facility() -> None:
    """Verify k3d is installed and the Docker daemon is reachable.

    Raises:
        ProvisioningError: If either is unavailable.
    """
    try:
        require_command(TOOL_K3D)
    except RuntimeError as err:
        raise ProvisioningError(str(err)) from err

    try:
        docker_client = docker.from_env()
    except (docker.errors.DockerException, OSError) as err:
        raise ProvisioningError(f"Docker daemon is not reachable: {err}") from err
    try:
        docker_client.ping()
    except (docker.errors.DockerException, OSError) as err:
        raise ProvisioningError(f"Docker daemon is not responding: {err}") from err
    finally:
        docker_client.close()


# ============================================================================
# Provisioner
# ============================================================================

class K3dProvisioner:
    """Creates and destroys the k3d cluster and its registry.

    Args:
        cfg: Resolved cluster configuration.
        k3d: Callable running ``k3d`` with the given arguments and a ``timeout``
            keyword; defaults to :func:`run_k3d`.
        kubectl: Callable with the :func:`~devcluster.utils.run_kubectl` signature.
        preflight: Callable that raises ``ProvisioningError`` when the facility
            is unavailable; defaults to :func:`check_facility`.
    """

    def __init__(
        self,
        cfg: ClusterConfig,
        k3d: Callable[..., str] = run_k3d,
        kubectl: Callable[..., tuple[bool, str, str]] = run_kubectl,
        preflight: Callable[[], None] = check_facility,
    ) -> None:
        self.cfg = cfg
        self._k3d = k3d
        self._kubectl = kubectl
        self._preflight = preflight

    # -- queries -------------------------------------------------------------

    def exists(self, name: str) -> bool:
        """Check whether k3d lists a cluster with this name.

        Raises:
            ProvisioningError: If k3d cannot be queried.
        """
        return name in self._list_names("cluster")

    def _list_names(self, kind: str) -> set[str]:
        try:
            output = self._k3d(kind, "list", "-o", "json", timeout=self.cfg.query_timeout)
        except _SH_ERRORS as err:
            raise ProvisioningError(f"Failed to list k3d {kind}s: {command_error_message(err)}") from err
        try:
            items = json.loads(output or "[]")
        except json.JSONDecodeError as err:
            raise ProvisioningError(f"Unexpected 'k3d {kind} list' output: {err}") from err
        return {item.get("name") for item in items if isinstance(item, dict)}

    # -- create --------------------------------------------------------------

    def _create_args(self, spec: ClusterSpec) -> list[str]:
        cfg = self.cfg
        registry = spec.registry_name
        if cfg.registry_port is not None:
            registry = f"{registry}:0.0.0.0:{cfg.registry_port}"
        args = [
            "cluster", "create", spec.name,
            "--agents", str(spec.agent_count),
            "--registry-create", registry,
            "--wait",
            "--timeout", cfg.k3d_wait_timeout,
        ]
        if cfg.k3s_image:
            args += ["--image", cfg.k3s_image]
        if cfg.api_port is not None:
            args += ["--api-port", str(cfg.api_port)]
        if cfg.lb_port is not None:
            args += ["--port", f"{cfg.lb_port}@loadbalancer"]
        return args

    def _cleanup_partial(self, name: str, registry_name: str) -> None:
        """Delete the cluster and registry a failed create left behind, if k3d lists them."""
        try:
            if self.exists(name):
                console.print(f"[yellow]   Removing partially created cluster '{name}'...[/yellow]")
                self._k3d("cluster", "delete", name, timeout=self.cfg.delete_timeout)
        except (ProvisioningError, *_SH_ERRORS) as err:
            logger.warning("Could not clean up partial cluster '%s': %s", name, err)
            console.print(
                f"[yellow]\u26a0\ufe0f  Cluster '{name}' may be partially created; "
                f"run 'k3d cluster delete {name}'[/yellow]"
            )
        self._delete_registry(registry_name)

    def create(self, spec: ClusterSpec) -> ClusterHandle:
        """Create the cluster with its registry.

        Args:
            spec: Cluster name, agent count, and registry name.

        Returns:
            Handle to the running cluster.

        Raises:
            ProvisioningError: If the count is invalid, the facility is unavailable,
                the name collides with an existing cluster, or k3d fails.
        """
        count = spec.agent_count
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ProvisioningError(f"Invalid agent count: {count!r}")

        self._preflight()

        if self.exists(spec.name):
            if not self.cfg.replace_existing:
                raise ProvisioningError(
                    f"A cluster named '{spec.name}' already exists. Delete it with "
                    f"'dev-cluster down' or set DEV_CLUSTER_REPLACE_EXISTING=true."
                )
            console.print(f"[yellow]   Replacing existing cluster '{spec.name}'[/yellow]")
            self.destroy(spec.name, registry_name=spec.registry_name)

        console.print(Panel.fit("Creating k3d cluster", style="bold blue"))
        args = self._create_args(spec)

        @retry(
            stop=stop_after_attempt(self.cfg.max_retries),
            wait=wait_fixed(CLUSTER_CREATE_RETRY_WAIT_SECONDS),
            retry=retry_if_exception_type(ProvisioningError),
            reraise=True,
        )
        def _attempt() -> None:
            try:
                self._k3d(*args, timeout=self.cfg.create_timeout)
            except _SH_ERRORS as err:
                logger.error("k3d cluster create failed: %s", command_error_message(err))
                self._cleanup_partial(spec.name, spec.registry_name)
                raise ProvisioningError(
                    f"Failed to create cluster '{spec.name}': {command_error_message(err)}"
                ) from err

        _attempt()
        console.print("[green]\u2705 Cluster created successfully[/green]")

        handle = ClusterHandle(name=spec.name, agent_count=count, registry_name=spec.registry_name)
        repos = resolve_registry_repos(spec.registry_name, self.cfg.registry_port)
        if repos:
            console.print(f"[green]  \u2713 Registry push: {repos[0]}  pull: {repos[1]}[/green]")
        else:
            console.print(f"[green]  \u2713 Registry: {registry_container_name(spec.registry_name)}[/green]")

        if self.cfg.wait_for_nodes:
            self.wait_for_nodes(handle)
        return handle

    def wait_for_nodes(self, handle: ClusterHandle) -> bool:
        """Wait for all nodes to be ready; a timeout is reported, not raised."""
        console.print("[yellow]\u2139\ufe0f  Waiting for all nodes to be ready...[/yellow]")
        seconds = int(self.cfg.node_ready_timeout)
        ok, _, stderr = self._kubectl(
            ["wait", "--for=condition=Ready", "nodes", "--all", f"--timeout={seconds}s"],
            context=handle.kube_context,
            timeout=self.cfg.node_ready_timeout + self.cfg.query_timeout,
        )
        if ok:
            console.print("[green]\u2705 All nodes are ready[/green]")
        else:
            logger.warning("Nodes not ready: %s", stderr.strip())
            console.print("[yellow]\u26a0\ufe0f  Not all nodes reported Ready; continuing[/yellow]")
        return ok

    # -- destroy -------------------------------------------------------------

    def destroy(self, name: str, registry_name: str | None = None) -> TeardownStatus:
        """Delete the cluster and the registry created with it.

        Idempotent: a missing cluster is reported and returns ``NOT_FOUND``.

        Args:
            name: k3d cluster name.
            registry_name: Registry created with the cluster; defaults to the
                configured registry name.

        Returns:
            Whether a cluster was deleted or none existed.

        Raises:
            ProvisioningError: If k3d cannot list or delete the cluster.
        """
        registry_name = registry_name or self.cfg.registry_name
        if not self.exists(name):
            console.print(f"[yellow]\u26a0\ufe0f  Cluster '{name}' not found or already deleted[/yellow]")
            # A failed create can leave the registry behind without a cluster.
            self._delete_registry(registry_name)
            return TeardownStatus.NOT_FOUND

        console.print(f"[yellow]\u2139\ufe0f  Deleting k3d cluster '{name}'...[/yellow]")
        try:
            self._k3d("cluster", "delete", name, timeout=self.cfg.delete_timeout)
        except _SH_ERRORS as err:
            raise ProvisioningError(
                f"Failed to delete cluster '{name}': {command_error_message(err)}"
            ) from err
        console.print(f"[green]\u2705 Cluster '{name}' deleted[/green]")

        self._delete_registry(registry_name)
        return TeardownStatus.DELETED

    def _delete_registry(self, registry_name: str) -> None:
        """Remove the registry if k3d left it behind; failures are warnings."""
        container = registry_container_name(registry_name)
        try:
            if container not in self._list_names("registry"):
                return
            self._k3d("registry", "delete", container, timeout=self.cfg.delete_timeout)
            console.print(f"[green]\u2705 Registry '{container}' deleted[/green]")
        except (ProvisioningError, *_SH_ERRORS) as err:
            logger.warning("Could not delete registry '%s': %s", container, err)
            console.print(
                f"[yellow]\u26a0\ufe0f  Registry '{container}' may still be running; "
                f"run 'k3d registry delete {container}'[/yellow]"
            )
