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

"""Read-only cluster status queries and rendering."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from rich.markup import escape
from rich.panel import Panel

from devcluster import console, logger
from devcluster.config import ClusterHandle
from devcluster.constants import (
    HEADING_CLUSTER_INFO,
    HEADING_NAMESPACES,
    HEADING_NODES,
    QUERY_TIMEOUT_SECONDS,
)
from devcluster.errors import QueryError
from devcluster.utils import run_kubectl

# (heading, kubectl arguments), in display order.
STATUS_QUERIES: tuple[tuple[str, list[str]], ...] = (
    (HEADING_CLUSTER_INFO, ["cluster-info"]),
    (HEADING_NODES, ["get", "nodes"]),
    (HEADING_NAMESPACES, ["get", "namespaces"]),
)


@dataclass(frozen=True)
class ReportSection:
    title: str
    ok: bool
    body: str = ""
    error: QueryError | None = None


@dataclass
class StatusReport:
    sections: list[ReportSection] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(section.ok for section in self.sections)

    def section(self, title: str) -> ReportSection | None:
        return next((s for s in self.sections if s.title == title), None)


class StatusReporter:
    """Queries cluster info, nodes, and namespaces and prints them.

    Query failures are reported in place of the section; no retries.
    """

    def __init__(
        self,
        kubectl: Callable[..., tuple[bool, str, str]] = run_kubectl,
        timeout: float = QUERY_TIMEOUT_SECONDS,
    ) -> None:
        self._kubectl = kubectl
        self._timeout = timeout

    def _query(self, handle: ClusterHandle, title: str, args: list[str]) -> ReportSection:
        ok, stdout, stderr = self._kubectl(args, context=handle.kube_context, timeout=self._timeout)
        if ok:
            return ReportSection(title=title, ok=True, body=stdout.rstrip())
        err = QueryError(f"kubectl {' '.join(args)} failed: {stderr.strip() or 'no output'}")
        logger.warning("%s", err)
        return ReportSection(title=title, ok=False, error=err)

    def collect(self, handle: ClusterHandle) -> StatusReport:
        """Run every status query without printing anything."""
        return StatusReport(
            sections=[self._query(handle, title, args) for title, args in STATUS_QUERIES]
        )

    def report(self, handle: ClusterHandle) -> StatusReport:
        """Run the status queries and render them for the operator.

        Args:
            handle: The running cluster.

        Returns:
            The collected report, including failed sections.
        """
        report = self.collect(handle)
        render_report(report)
        return report


def render_report(report: StatusReport) -> None:
    """Print each section under its heading."""
    for section in report.sections:
        console.print()
        console.print(Panel.fit(section.title, style="bold blue"))
        if section.ok:
            # Raw kubectl output; markup disabled so brackets are kept verbatim.
            console.print(section.body, markup=False, highlight=False)
        else:
            console.print(f"[red]\u2717 {escape(str(section.error))}[/red]")
