"""Human-readable renderings of NodeResourceTopology objects."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Iterable

TOPOLOGY_MANAGER_POLICY_ATTRIBUTE = "topologyManagerPolicy"
TOPOLOGY_MANAGER_SCOPE_ATTRIBUTE = "topologyManagerScope"

_MISSING = "<MISSING>"
_NOT_AVAILABLE = "N/A"


@dataclass
class ResourceInfo:
    """Per-zone resource amounts; quantities are kept in their textual form."""

    name: str = ""
    capacity: str = "0"
    allocatable: str = "0"
    available: str = "0"


@dataclass
class Zone:
    name: str = ""
    type: str = ""
    parent: str = ""
    resources: list[ResourceInfo] = field(default_factory=list)


@dataclass
class NodeResourceTopology:
    name: str = ""
    attributes: dict[str, str] = field(default_factory=dict)
    zones: list[Zone] = field(default_factory=list)


def resource_info(res_info: ResourceInfo) -> str:
    return f"{res_info.name}={res_info.capacity}/{res_info.allocatable}/{res_info.available}"


def clone_resource_info_list(res_infos: Iterable[ResourceInfo] | None) -> list[ResourceInfo]:
    """Return independent copies of the given resource infos."""
    return [dataclasses.replace(ri) for ri in res_infos or ()]


def resource_info_list(res_infos: Iterable[ResourceInfo] | None) -> str:
    """Render resource infos sorted by name, comma separated."""
    ordered = sorted(clone_resource_info_list(res_infos), key=lambda ri: ri.name)
    return ",".join(resource_info(ri) for ri in ordered)


def zone(zone: Zone) -> str:
    name = zone.name or _MISSING
    z_type = zone.type or _NOT_AVAILABLE
    res_list = resource_info_list(zone.resources) or _NOT_AVAILABLE
    return f"{name} [{z_type}]: {res_list}"


def node_resource_topology(nrt: NodeResourceTopology) -> str:
    name = nrt.name or _MISSING
    policy = nrt.attributes.get(TOPOLOGY_MANAGER_POLICY_ATTRIBUTE, _NOT_AVAILABLE)
    scope = nrt.attributes.get(TOPOLOGY_MANAGER_SCOPE_ATTRIBUTE, _NOT_AVAILABLE)
    lines = [f"{name} policy={policy}, scope={scope}\n"]
    lines.extend(f"- zone: {zone(z)}\n" for z in nrt.zones)
    return "".join(lines)


def node_resource_topology_list(nrts: Iterable[NodeResourceTopology], tag: str = "") -> str:
    header = "NRT BEGIN dump" + (f" {tag}" if tag else "") + "\n"
    body = "".join(node_resource_topology(nrt) for nrt in nrts)
    return f"{header}{body}NRT END dump\n"