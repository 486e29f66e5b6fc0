"""Shared fakes for dev cluster tests.

Nothing here touches Docker or a real cluster: k3d and kubectl are replaced
by recording fakes that keep their own view of which clusters exist.
"""

import json
import os

import pytest
import sh

from devcluster.config import ClusterConfig, ClusterHandle
from devcluster.provisioner import K3dProvisioner, TeardownStatus


def make_error(stderr: bytes = b"boom") -> sh.ErrorReturnCode:
    """Build the sh failure a k3d exit status of 1 raises."""
    return sh.ErrorReturnCode_1("k3d", b"", stderr)


class FakeK3d:
    """Stands in for ``run_k3d``; tracks clusters and registries by name."""

    def __init__(self, clusters=(), registries=()):
        self.clusters = set(clusters)
        self.registries = set(registries)
        self.calls = []
        self.fail_create = None
        self.leave_partial = False
        self.leave_registry = False
        self.fail_delete = None

    def __call__(self, *args, timeout):
        self.calls.append(args)
        kind, verb = args[0], args[1]
        if verb == "list":
            names = self.clusters if kind == "cluster" else self.registries
            return json.dumps([{"name": name} for name in sorted(names)])
        if (kind, verb) == ("cluster", "create"):
            registry = args[args.index("--registry-create") + 1].split(":")[0]
            if self.fail_create is not None:
                if self.leave_partial:
                    self.clusters.add(args[2])
                if self.leave_registry:
                    self.registries.add(f"k3d-{registry}")
                raise self.fail_create
            self.clusters.add(args[2])
            self.registries.add(f"k3d-{registry}")
            return ""
        if (kind, verb) == ("cluster", "delete"):
            if self.fail_delete is not None:
                raise self.fail_delete
            self.clusters.discard(args[2])
            return ""
        if (kind, verb) == ("registry", "delete"):
            self.registries.discard(args[2])
            return ""
        raise AssertionError(f"unexpected k3d call: {args}")

    def count(self, kind, verb):
        return sum(1 for call in self.calls if call[:2] == (kind, verb))


class FakeKubectl:
    """Stands in for ``run_kubectl``; answers every call with a canned result."""

    def __init__(self, results=None, default=(True, "ok\n", "")):
        self.results = dict(results or {})
        self.default = default
        self.calls = []

    def __call__(self, args, context=None, timeout=30):
        self.calls.append((tuple(args), context))
        return self.results.get(tuple(args), self.default)


class RecordingProvisioner:
    """Minimal provisioner for supervisor tests."""

    def __init__(self, fail_create=None, fail_destroy=None):
        self.fail_create = fail_create
        self.fail_destroy = fail_destroy
        self.created = []
        self.destroyed = []
        self.destroyed_registries = []

    def create(self, spec):
        self.created.append(spec)
        if self.fail_create is not None:
            raise self.fail_create
        return ClusterHandle(name=spec.name, agent_count=spec.agent_count, registry_name=spec.registry_name)

    def destroy(self, name, registry_name=None):
        self.destroyed.append(name)
        self.destroyed_registries.append(registry_name)
        if self.fail_destroy is not None:
            raise self.fail_destroy
        return TeardownStatus.DELETED


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep DEV_CLUSTER_* variables from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("DEV_CLUSTER_"):
            monkeypatch.delenv(key)


@pytest.fixture
def cfg():
    return ClusterConfig(wait_for_nodes=False, tick_seconds=0.01)


@pytest.fixture
def k3d():
    return FakeK3d()


@pytest.fixture
def kubectl():
    return FakeKubectl()


@pytest.fixture
def provisioner(cfg, k3d, kubectl):
    return K3dProvisioner(cfg, k3d=k3d, kubectl=kubectl, preflight=lambda: None)
