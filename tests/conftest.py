"""
Pytest config.

Pins the repo root on sys.path so `import ns_guard` works without an install,
and provides fakes for the Kubernetes collaborators.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest
from kubernetes.client import V1Namespace, V1ObjectMeta


def _ensure_repo_root_on_syspath() -> None:
    repo_root = Path(__file__).resolve().parents[1]
    repo_root_str = str(repo_root)
    if repo_root_str not in sys.path:
        sys.path.insert(0, repo_root_str)


_ensure_repo_root_on_syspath()

from ns_guard.adjudicator import Adjudicator  # noqa: E402
from ns_guard.engine import KINDS, DecisionEngine  # noqa: E402
from ns_guard.tools.k8s_client import NamespaceNotFound  # noqa: E402


class FakeCluster:
    """In-memory stand-in for the per-kind counters and namespace lookup."""

    def __init__(self) -> None:
        self.namespaces: Dict[str, V1Namespace] = {}
        self.counts: Dict[str, int] = {}
        self.list_errors: Dict[str, BaseException] = {}
        self.lookup_error: Optional[Exception] = None
        self.listed: List[Tuple[str, str]] = []

    def add_namespace(self, name: str, annotations: Optional[Dict[str, str]] = None) -> None:
        self.namespaces[name] = V1Namespace(metadata=V1ObjectMeta(name=name, annotations=annotations))

    def counter(self, kind: str):
        def count(namespace: str) -> int:
            self.listed.append((kind, namespace))
            if kind in self.list_errors:
                raise self.list_errors[kind]
            return self.counts.get(kind, 0)
        return count

    def counters(self):
        return [(kind, self.counter(kind)) for kind in KINDS]

    def get_namespace(self, name: str) -> V1Namespace:
        if self.lookup_error is not None:
            raise self.lookup_error
        if name not in self.namespaces:
            raise NamespaceNotFound(f"namespaces \"{name}\" not found")
        return self.namespaces[name]


@pytest.fixture
def cluster() -> FakeCluster:
    c = FakeCluster()
    c.add_namespace("test-namespace")
    return c


@pytest.fixture
def adjudicator(cluster: FakeCluster) -> Adjudicator:
    return Adjudicator(
        engine=DecisionEngine(cluster.counters()),
        get_namespace=cluster.get_namespace,
        admit_all=False,
    )
