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

"""Interactive session subcommand (up)."""

from __future__ import annotations

import typer
from pydantic import ValidationError
from rich.markup import escape

from devcluster import err_console
from devcluster.config import resolve_config
from devcluster.constants import EXIT_INPUT_ERROR
from devcluster.errors import InputError
from devcluster.session import start_session


def run_up(
    agents: int | None = None,
    cluster_name: str | None = None,
    registry_name: str | None = None,
    namespace: str | None = None,
) -> int:
    """Resolve config and run the interactive session, returning the exit code."""
    try:
        cfg = resolve_config(cluster_name=cluster_name, registry_name=registry_name, namespace=namespace)
    except ValidationError as err:
        err_console.print(f"[red]Invalid configuration:[/red] {escape(str(err))}")
        return EXIT_INPUT_ERROR

    try:
        return start_session(cfg, agents)
    except InputError as err:
        err_console.print(f"[red]\u274c {escape(str(err))}[/red]")
        return EXIT_INPUT_ERROR


def up(
    agents: int | None = typer.Option(
        None, "--agents", "-a", help="Agent nodes to create (prompted for when omitted)"),
    cluster_name: str | None = typer.Option(
        None, "--cluster-name", help="k3d cluster name (overrides DEV_CLUSTER_CLUSTER_NAME)"),
    registry_name: str | None = typer.Option(
        None, "--registry-name", help="Registry name (overrides DEV_CLUSTER_REGISTRY_NAME)"),
    namespace: str | None = typer.Option(
        None, "--namespace", help="Development namespace (overrides DEV_CLUSTER_NAMESPACE)"),
) -> None:
    """Create the cluster, set up the dev namespace, and wait for CTRL+C to tear it down."""
    raise typer.Exit(run_up(agents, cluster_name, registry_name, namespace))
