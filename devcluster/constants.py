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

"""Constants, tool metadata loading, and tool_value helper."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml


def load_tools() -> dict:
    """Load external tool metadata from tools.yaml.

    Returns:
        Parsed YAML content as a nested dictionary.
    """
    tools_file = Path(__file__).resolve().parent / "tools.yaml"
    with open(tools_file) as f:
        return yaml.safe_load(f)


TOOLS = load_tools()


def tool_value(*keys: str, default: Any = None) -> Any:
    """Safely traverse the TOOLS dict by key path.

    Args:
        *keys: Sequence of dictionary keys to traverse.
        default: Value to return if any key is missing.

    Returns:
        The value at the nested key path, or *default* if not found.
    """
    node = TOOLS
    for key in keys:
        if not isinstance(node, dict):
            return default
        node = node.get(key)
        if node is None:
            return default
    return node


# -- Session messages --
MSG_PROMPT_NODES = "How many nodes would you like to run? (EX. 3)"
MSG_STARTING = "Starting Cluster with {count} nodes..."
MSG_RUNNING = "Cluster running with {count} nodes"
MSG_DEVSPACE_SETUP = "Setting up Devspace Context"
MSG_DEVSPACE_DONE = "Devspace Successfully Initialized"
MSG_DEVSPACE_HINT = "Please install Devspace: {url}"
MSG_EXIT_HINT = "CTRL+C TO EXIT"
MSG_SHUTTING_DOWN = "SHUTTING DOWN CLUSTER..."
MSG_DELETION_COMPLETE = "CLUSTER DELETION COMPLETE"

# -- Report headings --
HEADING_CLUSTER_INFO = "CLUSTER INFO"
HEADING_NODES = "CLUSTER NODES"
HEADING_NAMESPACES = "CLUSTER NAMESPACES"

# -- Tools --
TOOL_K3D = "k3d"
TOOL_KUBECTL = "kubectl"
TOOL_DEVSPACE = "devspace"
DEVSPACE_INSTALL_URL = tool_value(
    "tools", TOOL_DEVSPACE, "install_url",
    default="https://devspace.sh/docs/getting-started/installation",
)

# -- k3d naming --
K3D_CONTEXT_PREFIX = "k3d-"
K3D_REGISTRY_PREFIX = "k3d-"

# -- Cluster defaults --
DEFAULT_CLUSTER_NAME = "dev"
DEFAULT_REGISTRY_NAME = "dev-registry"
DEFAULT_NAMESPACE = "devspace"
DEFAULT_K3S_IMAGE = tool_value("k3s", "image", default="") or None
DEFAULT_MAX_AGENTS = 100
DEFAULT_PROMPT_ATTEMPTS = 3
DEFAULT_CLUSTER_CREATE_MAX_RETRIES = 1

# -- Timeouts (seconds unless noted) --
K3D_WAIT_TIMEOUT = "120s"
CLUSTER_CREATE_TIMEOUT_SECONDS = 300
CLUSTER_DELETE_TIMEOUT_SECONDS = 120
QUERY_TIMEOUT_SECONDS = 30
NODE_READY_TIMEOUT_SECONDS = 300
CLUSTER_CREATE_RETRY_WAIT_SECONDS = 10

# -- Supervisor --
IDLE_TICK_SECONDS = 1.0

# -- Exit codes --
EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INPUT_ERROR = 2
