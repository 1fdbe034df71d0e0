"""Checks of cluster and kubelet settings needed for topology-aware scheduling."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any

AREA_CLUSTER = "cluster"
AREA_KUBELET = "kubelet"

EXPECTED_MIN_KUBE_VERSION = "1.21"

COMPONENT_API_VERSION = "API Version"
COMPONENT_CONFIGURATION = "configuration"
COMPONENT_FEATURE_GATES = "feature gates"
COMPONENT_CPU_MANAGER = "CPU manager"
COMPONENT_MEMORY_MANAGER = "memory manager"
COMPONENT_TOPOLOGY_MANAGER = "topology manager"

CPU_MANAGER_RECONCILE_PERIOD_MIN = timedelta(seconds=1)
CPU_MANAGER_RECONCILE_PERIOD_MAX = timedelta(seconds=10)

EXPECTED_CPU_MANAGER_POLICY = "static"
EXPECTED_MEMORY_MANAGER_POLICY = "Static"
EXPECTED_TOPOLOGY_MANAGER_POLICY = "single-numa-node"

_VERSION_RE = re.compile(r"^v?(\d+(?:\.\d+)*)(?:-([0-9A-Za-z.-]+))?(?:\+[0-9A-Za-z.-]+)?$")


def _quote(text: str) -> str:
    return json.dumps(text, ensure_ascii=False)


def _trimmed(value: int, scale: int) -> str:
    whole, frac = divmod(value, scale)
    if not frac:
        return str(whole)
    digits = str(frac).rjust(len(str(scale)) - 1, "0").rstrip("0")
    return f"{whole}.{digits}"


def _format_duration(duration: timedelta) -> str:
    """Format a duration the compact way: 0s, 500ms, 5s, 1m30s, 2h0m0s."""
    micros = duration // timedelta(microseconds=1)
    if micros == 0:
        return "0s"
    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    if micros < 1000:
        return f"{sign}{micros}µs"
    if micros < 1_000_000:
        return f"{sign}{_trimmed(micros, 1000)}ms"
    hours, rest = divmod(micros, 3600 * 1_000_000)
    minutes, rest = divmod(rest, 60 * 1_000_000)
    seconds = _trimmed(rest, 1_000_000)
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


def _parse_version(text: str) -> tuple[tuple[int, ...], str]:
    match = _VERSION_RE.match(text.strip())
    if match is None:
        raise ValueError(f"malformed version: {text}")
    numbers = tuple(int(part) for part in match.group(1).split("."))
    return numbers, match.group(2) or ""


def _is_api_version_at_least(server: str, refver: str) -> bool:
    ref_nums, ref_pre = _parse_version(refver)
    ser_nums, ser_pre = _parse_version(server)
    width = max(len(ref_nums), len(ser_nums))
    ref_nums += (0,) * (width - len(ref_nums))
    ser_nums += (0,) * (width - len(ser_nums))
    if ser_nums != ref_nums:
        return ser_nums > ref_nums
    if ser_pre and not ref_pre:
        return False
    if ref_pre and not ser_pre:
        return True
    return ser_pre >= ref_pre


@dataclass
class ValidationResult:
    node: str = ""
    area: str = ""
    component: str = ""
    setting: str = ""
    expected: str = ""
    detected: str = ""

    def __str__(self) -> str:
        if self.area == AREA_CLUSTER:
            return (
                f"Incorrect configuration of cluster: component {_quote(self.component)} "
                f"setting {_quote(self.setting)}: expected {_quote(self.expected)} "
                f"detected {_quote(self.detected)}"
            )
        return (
            f"Incorrect configuration of node {_quote(self.node)} area {_quote(self.area)} "
            f"component {_quote(self.component)} setting {_quote(self.setting)}: "
            f"expected {_quote(self.expected)} detected {_quote(self.detected)}"
        )


@dataclass
class KubeletConfiguration:
    """The subset of kubelet settings the validation looks at."""

    cpu_manager_policy: str = ""
    cpu_manager_reconcile_period: timedelta = timedelta(0)
    reserved_system_cpus: str = ""
    memory_manager_policy: str = ""
    reserved_memory: list[Any] = field(default_factory=list)
    topology_manager_policy: str = ""
    feature_gates: dict[str, bool] = field(default_factory=dict)


def validate_cluster_version(cluster_version: str) -> list[ValidationResult]:
    """Check the cluster version against the minimum supported one."""
    try:
        ok = _is_api_version_at_least(cluster_version, EXPECTED_MIN_KUBE_VERSION)
    except ValueError as err:
        return [
            ValidationResult(
                area=AREA_CLUSTER,
                component=COMPONENT_API_VERSION,
                expected="valid version",
                detected=str(err),
            )
        ]
    if not ok:
        return [
            ValidationResult(
                area=AREA_CLUSTER,
                component=COMPONENT_API_VERSION,
                expected=EXPECTED_MIN_KUBE_VERSION,
                detected=cluster_version,
            )
        ]
    return []


def validate_cluster_node_kubelet_config(
    node_name: str, node_version: Any, kubelet_conf: KubeletConfiguration | None
) -> list[ValidationResult]:
    """Check one node's kubelet configuration; return the issues found."""
    if kubelet_conf is None:
        return [
            ValidationResult(
                node=node_name,
                area=AREA_KUBELET,
                component=COMPONENT_CONFIGURATION,
                expected="any value",
                detected="no configuration",
            )
        ]

    def issue(component: str, setting: str, expected: str, detected: str) -> ValidationResult:
        return ValidationResult(node_name, AREA_KUBELET, component, setting, expected, detected)

    vrs: list[ValidationResult] = []
    if kubelet_conf.cpu_manager_policy != EXPECTED_CPU_MANAGER_POLICY:
        vrs.append(
            issue(COMPONENT_CPU_MANAGER, "policy", EXPECTED_CPU_MANAGER_POLICY, kubelet_conf.cpu_manager_policy)
        )

    period = kubelet_conf.cpu_manager_reconcile_period
    if not CPU_MANAGER_RECONCILE_PERIOD_MIN <= period <= CPU_MANAGER_RECONCILE_PERIOD_MAX:
        vrs.append(
            issue(
                COMPONENT_CPU_MANAGER,
                "reconcile period",
                f"in range [{_format_duration(CPU_MANAGER_RECONCILE_PERIOD_MIN)}, "
                f"{_format_duration(CPU_MANAGER_RECONCILE_PERIOD_MAX)}]",
                _format_duration(period),
            )
        )

    if not kubelet_conf.reserved_system_cpus:
        vrs.append(issue(COMPONENT_CONFIGURATION, "CPU", "reserved some CPU cores", "no reserved CPU cores"))

    if kubelet_conf.memory_manager_policy != EXPECTED_MEMORY_MANAGER_POLICY:
        vrs.append(
            issue(
                COMPONENT_MEMORY_MANAGER,
                "policy",
                EXPECTED_MEMORY_MANAGER_POLICY,
                kubelet_conf.memory_manager_policy,
            )
        )

    if not kubelet_conf.reserved_memory:
        vrs.append(
            issue(COMPONENT_CONFIGURATION, "memory", "reserved memory blocks", "no reserved memory blocks")
        )

    if kubelet_conf.topology_manager_policy != EXPECTED_TOPOLOGY_MANAGER_POLICY:
        vrs.append(
            issue(
                COMPONENT_TOPOLOGY_MANAGER,
                "policy",
                EXPECTED_TOPOLOGY_MANAGER_POLICY,
                kubelet_conf.topology_manager_policy,
            )
        )
    return vrs


class Validator:
    """Runs validations and accumulates their results."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self.log = log or logging.getLogger(__name__)
        self.server_version: str | None = None
        self._results: list[ValidationResult] = []

    def results(self) -> list[ValidationResult]:
        return list(self._results)

    def validate_cluster_version_string(self, cluster_version: str) -> list[ValidationResult]:
        """Validate the server version, remember it and record the issues."""
        self.server_version = cluster_version
        vrs = validate_cluster_version(cluster_version)
        self._results.extend(vrs)
        return vrs

    def validate_node_kubelet_config(
        self, node_name: str, node_version: Any, kubelet_conf: KubeletConfiguration | None
    ) -> list[ValidationResult]:
        vrs = validate_cluster_node_kubelet_config(node_name, node_version, kubelet_conf)
        result = f"{len(vrs)} issues found" if vrs else "OK"
        self.log.info("validated node=%s result=%s", node_name, result)
        return vrs