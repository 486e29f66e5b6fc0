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

"""Session workflows that compose the provisioner, initializer, reporter, and supervisor."""

from __future__ import annotations

from collections.abc import Callable

from rich.markup import escape

from devcluster import console, err_console, logger
from devcluster.config import ClusterConfig, ClusterHandle, ClusterSpec, NamespaceBinding
from devcluster.constants import (
    DEFAULT_MAX_AGENTS,
    EXIT_FAILURE,
    EXIT_OK,
    MSG_PROMPT_NODES,
    MSG_RUNNING,
    MSG_STARTING,
)
from devcluster.errors import InputError, ProvisioningError
from devcluster.namespace import NamespaceInitializer
from devcluster.provisioner import K3dProvisioner, TeardownStatus, parse_agent_count
from devcluster.status import StatusReporter
from devcluster.supervisor import LifecycleSupervisor


def _read_console_line() -> str:
    return console.input()


def prompt_agent_count(
    read_line: Callable[[], str] = _read_console_line,
    max_agents: int = DEFAULT_MAX_AGENTS,
    attempts: int = 1,
) -> int:
    """Ask for the agent node count until a valid answer or attempts run out.

    Args:
        read_line: Returns one line of input; raises EOFError when input is exhausted.
        max_agents: Largest count accepted.
        attempts: How many answers to read before giving up.

    Returns:
        The parsed agent count.

    Raises:
        InputError: If input ends or every answer is invalid.
    """
    last_error: InputError | None = None
    for _ in range(attempts):
        console.print(MSG_PROMPT_NODES)
        try:
            line = read_line()
        except EOFError:
            raise InputError("No node count entered") from last_error
        try:
            return parse_agent_count(line, max_agents)
        except InputError as err:
            last_error = err
            err_console.print(f"[red]{escape(str(err))}[/red]")
    raise InputError(f"No valid node count after {attempts} attempt(s): {last_error}")


def start_session(
    cfg: ClusterConfig,
    agents: int | None = None,
    *,
    provisioner: K3dProvisioner | None = None,
    initializer: NamespaceInitializer | None = None,
    reporter: StatusReporter | None = None,
    supervisor: LifecycleSupervisor | None = None,
    read_line: Callable[[], str] = _read_console_line,
) -> int:
    """Run the interactive dev cluster session until the operator interrupts it.

    Args:
        cfg: Resolved cluster configuration.
        agents: Agent node count, or None to prompt for it.
        provisioner: Cluster provisioner, defaults to k3d.
        initializer: Namespace initializer, defaults to DevSpace binding.
        reporter: Status reporter, defaults to kubectl queries.
        supervisor: Lifecycle supervisor, defaults to one around *provisioner*.
        read_line: Input source for the node count prompt.

    Returns:
        Process exit code.

    Raises:
        InputError: If the node count is invalid; nothing is provisioned.
    """
    if agents is None:
        agents = prompt_agent_count(read_line, cfg.max_agents, cfg.prompt_attempts)
    else:
        agents = parse_agent_count(str(agents), cfg.max_agents)

    provisioner = provisioner or K3dProvisioner(cfg)
    initializer = initializer or NamespaceInitializer(
        NamespaceBinding(namespace=cfg.namespace), timeout=cfg.query_timeout,
    )
    reporter = reporter or StatusReporter(timeout=cfg.query_timeout)
    supervisor = supervisor or LifecycleSupervisor(provisioner, tick_seconds=cfg.tick_seconds)

    spec = ClusterSpec.from_config(cfg, agents)

    def _on_ready(handle: ClusterHandle) -> None:
        console.print(MSG_RUNNING.format(count=handle.agent_count))
        init_result = initializer.initialize(handle)
        if init_result.degraded:
            logger.info("Continuing without a development context")
        reporter.report(handle)

    with supervisor:
        console.print(MSG_STARTING.format(count=spec.agent_count))
        return supervisor.run(spec, on_ready=_on_ready)


def stop_cluster(cfg: ClusterConfig, provisioner: K3dProvisioner | None = None) -> int:
    """Delete the cluster outside an interactive session.

    Returns:
        0 when the cluster was deleted or did not exist, 1 on failure.
    """
    provisioner = provisioner or K3dProvisioner(cfg)
    try:
        status = provisioner.destroy(cfg.cluster_name)
    except ProvisioningError as err:
        err_console.print(f"[red]\u274c {escape(str(err))}[/red]")
        return EXIT_FAILURE
    if status is TeardownStatus.DELETED:
        console.print(f"Cluster '{cfg.cluster_name}' deleted.")
    return EXIT_OK


def show_status(
    cfg: ClusterConfig,
    provisioner: K3dProvisioner | None = None,
    reporter: StatusReporter | None = None,
) -> int:
    """Print the status report for an existing cluster.

    Returns:
        0 when every query succeeded, 1 if the cluster is missing or a query failed.
    """
    provisioner = provisioner or K3dProvisioner(cfg)
    reporter = reporter or StatusReporter(timeout=cfg.query_timeout)
    try:
        present = provisioner.exists(cfg.cluster_name)
    except ProvisioningError as err:
        err_console.print(f"[red]\u274c {escape(str(err))}[/red]")
        return EXIT_FAILURE
    if not present:
        console.print(f"Cluster '{cfg.cluster_name}' does not exist.")
        return EXIT_FAILURE

    handle = ClusterHandle(name=cfg.cluster_name, agent_count=None, registry_name=cfg.registry_name)
    report = reporter.report(handle)
    return EXIT_OK if report.ok else EXIT_FAILURE
