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

"""Teardown subcommand."""

from __future__ import annotations

import typer

from devcluster.config import resolve_config
from devcluster.session import stop_cluster


def down(
    cluster_name: str | None = typer.Option(None, "--cluster-name", help="k3d cluster name"),
    registry_name: str | None = typer.Option(None, "--registry-name", help="Registry name"),
) -> None:
    """Delete the cluster and its registry. Succeeds if the cluster is already gone."""
    cfg = resolve_config(cluster_name=cluster_name, registry_name=registry_name)
    raise typer.Exit(stop_cluster(cfg))
