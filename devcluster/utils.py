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

"""Utility functions for kubectl, registry naming, and command checks."""

from __future__ import annotations

import subprocess

import sh

from devcluster.constants import K3D_REGISTRY_PREFIX, QUERY_TIMEOUT_SECONDS, TOOL_KUBECTL, tool_value


def registry_container_name(registry_name: str) -> str:
    """Return the container name k3d gives a registry created with a cluster.

    Args:
        registry_name: Registry name passed to ``--registry-create``.

    Returns:
        The ``k3d-`` prefixed registry name.
    """
    if registry_name.startswith(K3D_REGISTRY_PREFIX):
        return registry_name
    return f"{K3D_REGISTRY_PREFIX}{registry_name}"


def resolve_registry_repos(registry_name: str, port: int | None) -> tuple[str, str] | None:
    """Resolve push/pull registry repos.

    k3d uses separate names for push (localhost:<port>) and pull (<registry>:<port>)
    because the push happens from the host while the pull happens inside the cluster.

    Args:
        registry_name: Registry name passed to ``--registry-create``.
        port: Registry host port, or None when k3d picked a random one.

    Returns:
        Tuple of (push_repo, pull_repo), or None when the port is unknown.
    """
    if port is None:
        return None
    return f"localhost:{port}", f"{registry_container_name(registry_name)}:{port}"


def install_hint(cmd: str) -> str:
    """Return an install hint for a known external tool, or an empty string."""
    url = tool_value("tools", cmd, "install_url")
    return f" See {url}" if url else ""


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except (sh.ErrorReturnCode, sh.CommandNotFound) as err:
        raise RuntimeError(
            f"Required command '{cmd}' not found. Please install it first.{install_hint(cmd)}"
        ) from err


def command_error_message(err: Exception) -> str:
    """Extract a readable message from an ``sh`` failure.

    Prefers the command's stderr, falls back to stdout, then to the exception text.

    Args:
        err: Exception raised by an ``sh`` command.

    Returns:
        A single-line-ish message suitable for the operator.
    """
    if isinstance(err, sh.ErrorReturnCode):
        for stream in (err.stderr, err.stdout):
            text = (stream or b"").decode(errors="replace").strip()
            if text:
                return text
        return f"exit code {err.exit_code}"
    if isinstance(err, sh.TimeoutException):
        return "timed out"
    return str(err)


def run_kubectl(
    args: list[str],
    context: str | None = None,
    timeout: float = QUERY_TIMEOUT_SECONDS,
) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Uses subprocess instead of sh because kubectl output parsing requires
    precise control over stdout/stderr separation that sh's combined output
    makes unreliable (e.g., spotting ``AlreadyExists`` in stderr).

    Args:
        args: kubectl arguments (e.g. ``["get", "nodes"]``).
        context: kubeconfig context to target, or None for the current one.
        timeout: Maximum seconds to wait for the command to complete.

    Returns:
        Tuple of (success, stdout, stderr).
    """
    cmd = [TOOL_KUBECTL]
    if context:
        cmd.append(f"--context={context}")
    cmd.extend(args)
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)
