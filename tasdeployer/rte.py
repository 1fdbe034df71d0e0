"""Updates of the resource-topology-exporter daemonset objects."""

from __future__ import annotations

from typing import Any, MutableMapping

from tasdeployer.objectupdate import find_container_by_name

CONTAINER_NAME_RTE = "resource-topology-exporter"
RTE_CONFIG_MAP_NAME = "rte-config"
DEFAULT_METRICS_PORT = 2112

_CONFIG_MOUNT_NAME = "rte-config-volume"
_CONFIG_MOUNT_PATH = "/etc/resource-topology-exporter/"
_METRICS_PORT_ENV = "METRICS_PORT"
_METRICS_PORT_NAME = "metrics-port"

Obj = MutableMapping[str, Any]


def _append(obj: Obj, key: str, item: Any) -> None:
    items = obj.get(key)
    if items is None:
        items = obj[key] = []
    items.append(item)


def _pod_spec(daemon_set: Obj) -> Obj:
    spec = daemon_set.get("spec") or {}
    template = spec.get("template") or {}
    return template.get("spec") or {}


def container_config(pod_spec: Obj, container: Obj, config_map_name: str) -> None:
    """Mount the exporter configuration from the named ConfigMap."""
    _append(container, "volumeMounts", {"name": _CONFIG_MOUNT_NAME, "mountPath": _CONFIG_MOUNT_PATH})
    _append(
        pod_spec,
        "volumes",
        {
            "name": _CONFIG_MOUNT_NAME,
            "configMap": {"name": config_map_name, "optional": True},
        },
    )


def metrics_port(daemon_set: Obj, port: int) -> None:
    """Expose the exporter metrics on ``port``."""
    container = find_container_by_name(_pod_spec(daemon_set).get("containers"), CONTAINER_NAME_RTE)
    if container is None:
        return
    for env in container.get("env") or ():
        if env.get("name") == _METRICS_PORT_ENV:
            env["value"] = str(port)
    container["ports"] = [{"name": _METRICS_PORT_NAME, "containerPort": port}]