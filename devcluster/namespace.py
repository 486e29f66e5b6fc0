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

"""Development namespace creation and DevSpace context binding."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import sh
from rich.markup import escape

from devcluster import console, logger
from devcluster.config import ClusterHandle, NamespaceBinding
from devcluster.constants import (
    DEVSPACE_INSTALL_URL,
    MSG_DEVSPACE_DONE,
    MSG_DEVSPACE_HINT,
    MSG_DEVSPACE_SETUP,
    QUERY_TIMEOUT_SECONDS,
)
from devcluster.errors import DegradedInitError
from devcluster.utils import command_error_message, require_command, run_kubectl


class InitStatus(str, Enum):
    INITIALIZED = "initialized"
    DEGRADED = "degraded"


@dataclass(frozen=True)
class InitResult:
    """Outcome of namespace initialization.

    Attributes:
        status: ``INITIALIZED`` when both steps succeeded, ``DEGRADED`` otherwise.
        namespace_ready: Whether the namespace exists on the cluster.
        context_bound: Whether the development context targets the namespace.
        error: The failure that degraded initialization, if any.
    """

    status: InitStatus
    namespace_ready: bool
    context_bound: bool
    error: DegradedInitError | None = None

    @property
    def degraded(self) -> bool:
        return self.status is InitStatus.DEGRADED


def run_devspace(*args: str, timeout: float) -> str:
    """Run a devspace command and return its output."""
    return str(sh.devspace(*args, _timeout=timeout))


class NamespaceInitializer:
    """Best-effort namespace and development context setup.

    Args:
        binding: Namespace name and the context tool to bind it with.
        kubectl: Callable with the :func:`~devcluster.utils.run_kubectl` signature.
        devspace: Callable running ``devspace`` with a ``timeout`` keyword.
        require: Callable raising ``RuntimeError`` when a command is missing.
        timeout: Seconds allowed for each external call.
    """

    def __init__(
        self,
        binding: NamespaceBinding,
        kubectl: Callable[..., tuple[bool, str, str]] = run_kubectl,
        devspace: Callable[..., str] = run_devspace,
        require: Callable[[str], None] = require_command,
        timeout: float = QUERY_TIMEOUT_SECONDS,
    ) -> None:
        self.binding = binding
        self._kubectl = kubectl
        self._devspace = devspace
        self._require = require
        self._timeout = timeout

    def _ensure_namespace(self, handle: ClusterHandle) -> None:
        ns = self.binding.namespace
        ok, _, stderr = self._kubectl(
            ["create", "namespace", ns], context=handle.kube_context, timeout=self._timeout,
        )
        if ok:
            console.print(f"[green]  \u2713 Namespace '{ns}' created[/green]")
        elif "AlreadyExists" in stderr:
            console.print(f"[yellow]   Namespace '{ns}' already exists[/yellow]")
        else:
            raise DegradedInitError(f"Failed to create namespace '{ns}': {stderr.strip()}")

    def _bind_context(self) -> None:
        tool = self.binding.context_tool
        if tool is None:
            raise DegradedInitError("No development context tool configured")
        try:
            self._require(tool)
        except RuntimeError as err:
            raise DegradedInitError(str(err)) from err
        try:
            self._devspace("use", "namespace", self.binding.namespace, timeout=self._timeout)
        except (sh.ErrorReturnCode, sh.TimeoutException, sh.CommandNotFound) as err:
            raise DegradedInitError(
                f"'{tool} use namespace {self.binding.namespace}' failed: {command_error_message(err)}"
            ) from err

    def initialize(self, handle: ClusterHandle) -> InitResult:
        """Create the namespace, then bind the development context to it.

        Both steps are best-effort: failures produce a ``DEGRADED`` result
        and an install hint, never an exception.

        Args:
            handle: The running cluster.

        Returns:
            The typed initialization outcome.
        """
        console.print(MSG_DEVSPACE_SETUP)
        namespace_ready = False
        try:
            self._ensure_namespace(handle)
            namespace_ready = True
            self._bind_context()
        except DegradedInitError as err:
            logger.warning("Development context setup degraded: %s", err)
            console.print(f"[yellow]\u26a0\ufe0f  {escape(str(err))}[/yellow]")
            console.print(MSG_DEVSPACE_HINT.format(url=DEVSPACE_INSTALL_URL))
            return InitResult(
                status=InitStatus.DEGRADED,
                namespace_ready=namespace_ready,
                context_bound=False,
                error=err,
            )

        console.print(MSG_DEVSPACE_DONE)
        return InitResult(status=InitStatus.INITIALIZED, namespace_ready=True, context_bound=True)
