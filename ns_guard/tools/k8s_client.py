# ns_guard/tools/k8s_client.py
from typing import Any, Callable, Dict, List, Tuple

from kubernetes import client, config
from kubernetes.client import ApiException
from kubernetes.config.config_exception import ConfigException

from ns_guard.engine import KINDS


class NamespaceNotFound(Exception):
    pass


def get_clients() -> Dict[str, Any]:
    """
    Returns Kubernetes API clients.
    Tries in-cluster config first, then local kubeconfig.
    """
    try:
        config.load_incluster_config()
    except ConfigException:
        config.load_kube_config()

    return {
        "core": client.CoreV1Api(),
        "apps": client.AppsV1Api(),
        "networking": client.NetworkingV1Api(),
        "autoscaling": client.AutoscalingV1Api(),
    }


def _list_fn(clients: Dict[str, Any], kind: str) -> Callable[..., Any]:
    core = clients["core"]
    apps = clients["apps"]

    if kind == "pods":
        return core.list_namespaced_pod
    if kind == "services":
        return core.list_namespaced_service
    if kind == "replicasets":
        return apps.list_namespaced_replica_set
    if kind == "deployments":
        return apps.list_namespaced_deployment
    if kind == "statefulsets":
        return apps.list_namespaced_stateful_set
    if kind == "daemonsets":
        return apps.list_namespaced_daemon_set
    if kind == "ingresses":
        return clients["networking"].list_namespaced_ingress
    if kind == "horizontalpodautoscalers":
        return clients["autoscaling"].list_namespaced_horizontal_pod_autoscaler

    raise ValueError(f"Unsupported kind '{kind}'")


def make_counter(list_fn: Callable[..., Any]) -> Callable[[str], int]:
    def count(namespace: str) -> int:
        return len(list_fn(namespace).items)
    return count


def build_counters(clients: Dict[str, Any]) -> List[Tuple[str, Callable[[str], int]]]:
    """(kind, counter) pairs for every guarded kind, in check order."""
    return [(kind, make_counter(_list_fn(clients, kind))) for kind in KINDS]


def make_namespace_getter(clients: Dict[str, Any]) -> Callable[[str], Any]:
    core = clients["core"]

    def get_namespace(name: str) -> Any:
        try:
            return core.read_namespace(name)
        except ApiException as e:
            if e.status == 404:
                raise NamespaceNotFound(f"namespaces \"{name}\" not found") from e
            raise
    return get_namespace
