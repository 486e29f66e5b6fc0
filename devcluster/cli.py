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

"""
cli.py - CLI for the local k3d development cluster.

Running with no subcommand starts the interactive session: it asks for the
number of agent nodes, creates the cluster with its registry, sets up the
devspace namespace, prints cluster status, and deletes everything on CTRL+C.

Subcommands:
    up      Interactive session (the default), optionally with --agents
    down    Delete the cluster and its registry
    status  Show cluster info, nodes, and namespaces

Environment Variables:
    All settings can be overridden via DEV_CLUSTER_* environment variables:
    - DEV_CLUSTER_CLUSTER_NAME (default: dev)
    - DEV_CLUSTER_REGISTRY_NAME (default: dev-registry)
    - DEV_CLUSTER_NAMESPACE (default: devspace)
    - DEV_CLUSTER_REPLACE_EXISTING (default: false)
    - And more (see ClusterConfig for the full list)

Examples:
    # Interactive session
    dev-cluster

    # Three agents, no prompt
    dev-cluster up --agents 3

    # Clean up a cluster left behind by a killed session
    dev-cluster down
"""

from __future__ import annotations

import logging
import sys

import typer
from rich.markup import escape

from devcluster import __version__, err_console
from devcluster.commands import down_cmd, status_cmd, up_cmd

app = typer.Typer(help="Local k3d development cluster with registry and devspace namespace.")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback(invoke_without_command=True)
def _main_callback(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit"),
) -> None:
    """Initialize logging and run the interactive session when no subcommand is given."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )
    if ctx.invoked_subcommand is None:
        raise typer.Exit(up_cmd.run_up())


app.command("up")(up_cmd.up)
app.command("down")(down_cmd.down)
app.command("status")(status_cmd.status)


def main() -> None:
    try:
        app()
    except Exception as e:
        err_console.print(f"[red]\u274c {escape(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
