"""In-place updates of Kubernetes objects represented as plain mappings."""

from __future__ import annotations

from typing import Any, MutableMapping, Sequence

NODE_ROLE_CONTROL_PLANE = "node-role.kubernetes.io/control-plane"
NODE_ROLE_CONTROL_PLANE_DEPRECATED = "node-role.kubernetes.io/master"

TAINT_EFFECT_NO_SCHEDULE = "NoSchedule"
NODE_SELECTOR_OP_EXISTS = "Exists"

_REQUIRED_AFFINITY = "requiredDuringSchedulingIgnoredDuringExecution"

_API_GROUP_CORE = ""
_API_GROUP_COORDINATION = "coordination.k8s.io"
_RESOURCE_ENDPOINTS = "endpoints"
_RESOURCE_LEASES = "leases"

_LEADER_ELECTION_TARGETS = frozenset(
    {
        (_API_GROUP_CORE, _RESOURCE_ENDPOINTS),
        (_API_GROUP_COORDINATION, _RESOURCE_LEASES),
    }
)

Obj = MutableMapping[str, Any]


def _ensure_mapping(parent: Obj, key: str) -> Obj:
    value = parent.get(key)
    if value is None:
        value = parent[key] = {}
    return value


def _ensure_list(parent: Obj, key: str) -> list:
    value = parent.get(key)
    if value is None:
        value = parent[key] = []
    return value


def _first(items: Sequence[Any] | None) -> Any:
    return items[0] if items else None


def set_pod_scheduler_affinity_on_control_plane(pod_spec: Obj | None) -> Obj | None:
    """Make a pod spec tolerate and require control-plane nodes.

    The spec is updated in place and returned; ``None`` is passed through.
    """
    if pod_spec is None:
        return None

    tolerations = _ensure_list(pod_spec, "tolerations")
    for label in (NODE_ROLE_CONTROL_PLANE, NODE_ROLE_CONTROL_PLANE_DEPRECATED):
        if not any(tol.get("key") == label for tol in tolerations):
            tolerations.append({"key": label, "effect": TAINT_EFFECT_NO_SCHEDULE})

    affinity = _ensure_mapping(pod_spec, "affinity")
    node_affinity = _ensure_mapping(affinity, "nodeAffinity")
    if node_affinity.get(_REQUIRED_AFFINITY) is None:
        node_affinity[_REQUIRED_AFFINITY] = {
            "nodeSelectorTerms": [
                {
                    "matchExpressions": [
                        {
                            "key": NODE_ROLE_CONTROL_PLANE,
                            "operator": NODE_SELECTOR_OP_EXISTS,
                        }
                    ]
                }
            ]
        }
    return pod_spec


def find_container_by_name(containers: Sequence[Obj] | None, name: str) -> Obj | None:
    """Return the container with the given name, or None. The result is the live object."""
    return next((cont for cont in containers or () if cont.get("name") == name), None)


def role_for_leader_election(role: Obj, namespace: str, resource_name: str) -> None:
    """Set the namespace and pin leader-election rules to a resource name."""
    metadata = _ensure_mapping(role, "metadata")
    if namespace:
        metadata["namespace"] = namespace
    else:
        metadata.pop("namespace", None)

    for rule in role.get("rules") or ():
        target = (_first(rule.get("apiGroups")), _first(rule.get("resources")))
        if target in _LEADER_ELECTION_TARGETS:
            rule["resourceNames"] = [resource_name]


def _update_subjects(binding: Obj, service_account: str, namespace: str) -> None:
    for subject in binding.get("subjects") or ():
        if service_account:
            subject["name"] = service_account
        subject["namespace"] = namespace


def role_binding(binding: Obj, service_account: str, namespace: str) -> None:
    """Point every subject of a RoleBinding at the namespace (and service account)."""
    _update_subjects(binding, service_account, namespace)


def cluster_role_binding(binding: Obj, service_account: str, namespace: str) -> None:
    """Point every subject of a ClusterRoleBinding at the namespace (and service account)."""
    _update_subjects(binding, service_account, namespace)


def make_machine_config_name(name: str) -> str:
    """Return the MachineConfig name derived from ``name``."""
    return f"51-{name}"


def make_security_context_constraint_name(service_account: Obj) -> str:
    """Return the SCC user name for a service account."""
    metadata = service_account.get("metadata") or {}
    namespace = metadata.get("namespace", "")
    name = metadata.get("name", "")
    return f"system:serviceaccount:{namespace}:{name}"


def security_context_constraint(scc: Obj, service_account: Obj) -> None:
    """Add the service account to the SCC users unless already there."""
    user = make_security_context_constraint_name(service_account)
    users = _ensure_list(scc, "users")
    if user not in users:
        users.append(user)