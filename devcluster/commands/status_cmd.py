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

"""Status subcommand."""

from __future__ import annotations

import typer

from devcluster.config import display_config, resolve_config
from devcluster.session import show_status


def status(
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="k3d cluster name"),
) -> None:
    """Show cluster info, nodes, and namespaces for an existing cluster."""
    cfg = resolve_config(cluster_name=cluster_name)
    display_config(cfg)
    raise typer.Exit(show_status(cfg))
