"""Tests for the cluster status report."""

from conftest import FakeKubectl
from devcluster.config import ClusterHandle
from devcluster.constants import HEADING_CLUSTER_INFO, HEADING_NAMESPACES, HEADING_NODES
from devcluster.status import StatusReporter

HANDLE = ClusterHandle(name="dev", agent_count=1, registry_name="dev-registry")


def test_report_runs_queries_in_order_against_cluster_context():
    kubectl = FakeKubectl()
    report = StatusReporter(kubectl=kubectl).report(HANDLE)

    assert [s.title for s in report.sections] == [HEADING_CLUSTER_INFO, HEADING_NODES, HEADING_NAMESPACES]
    assert [args for args, _ in kubectl.calls] == [("cluster-info",), ("get", "nodes"), ("get", "namespaces")]
    assert {context for _, context in kubectl.calls} == {"k3d-dev"}
    assert report.ok


def test_failed_query_is_reported_in_place():
    kubectl = FakeKubectl(results={("get", "nodes"): (False, "", "the server is currently unable to handle the request")})
    report = StatusReporter(kubectl=kubectl).report(HANDLE)

    assert not report.ok
    nodes = report.section(HEADING_NODES)
    assert not nodes.ok
    assert "unable to handle" in str(nodes.error)
    assert report.section(HEADING_NAMESPACES).ok


def test_collect_keeps_raw_output():
    kubectl = FakeKubectl(default=(True, "NAME   STATUS\n[dev]  Ready\n\n", ""))
    report = StatusReporter(kubectl=kubectl).collect(HANDLE)
    assert report.section(HEADING_CLUSTER_INFO).body == "NAME   STATUS\n[dev]  Ready"
