from datetime import timedelta

import pytest

from tasdeployer.validator import (
    AREA_CLUSTER,
    AREA_KUBELET,
    COMPONENT_API_VERSION,
    COMPONENT_CONFIGURATION,
    COMPONENT_CPU_MANAGER,
    COMPONENT_MEMORY_MANAGER,
    COMPONENT_TOPOLOGY_MANAGER,
    EXPECTED_CPU_MANAGER_POLICY,
    EXPECTED_MEMORY_MANAGER_POLICY,
    EXPECTED_TOPOLOGY_MANAGER_POLICY,
    KubeletConfiguration,
    ValidationResult,
    Validator,
    validate_cluster_node_kubelet_config,
    validate_cluster_version,
)

NODE = "testNode"


def _key(vr):
    return (vr.node, vr.area, vr.component, vr.setting)


def _good_conf(**overrides):
    values = dict(
        cpu_manager_policy=EXPECTED_CPU_MANAGER_POLICY,
        cpu_manager_reconcile_period=timedelta(seconds=5),
        memory_manager_policy=EXPECTED_MEMORY_MANAGER_POLICY,
        reserved_memory=[{"numaNode": 1}],
        reserved_system_cpus="0,1",
        topology_manager_policy=EXPECTED_TOPOLOGY_MANAGER_POLICY,
    )
    values.update(overrides)
    return KubeletConfiguration(**values)


def test_validation_result_to_string_node():
    vr = ValidationResult("any", "foo", "bar", "baz", "42", "0")
    assert str(vr) == (
        'Incorrect configuration of node "any" area "foo" component "bar" '
        'setting "baz": expected "42" detected "0"'
    )


def test_validation_result_to_string_cluster():
    vr = ValidationResult(area=AREA_CLUSTER, component="c", expected="1.21", detected="1.10")
    assert str(vr) == (
        'Incorrect configuration of cluster: component "c" setting "": expected "1.21" detected "1.10"'
    )


API_ISSUE = [("", AREA_CLUSTER, COMPONENT_API_VERSION, "")]


@pytest.mark.parametrize(
    "version,expected",
    [("1.23", []), ("", API_ISSUE), ("INVALID", API_ISSUE), ("1.10", API_ISSUE)],
)
def test_cluster_version_validations(version, expected):
    got = validate_cluster_version(version)
    assert sorted(_key(vr) for vr in got) == sorted(expected)


def test_cluster_version_details():
    [too_old] = validate_cluster_version("1.10")
    assert (too_old.expected, too_old.detected) == ("1.21", "1.10")
    [invalid] = validate_cluster_version("INVALID")
    assert invalid.expected == "valid version"
    assert validate_cluster_version("v1.23.1") == []


def _kubelet(component, setting=""):
    return (NODE, AREA_KUBELET, component, setting)


KUBELET_CASES = [
    pytest.param(None, None, [_kubelet(COMPONENT_CONFIGURATION)], id="nil"),
    pytest.param(
        KubeletConfiguration(),
        None,
        [
            _kubelet(COMPONENT_CPU_MANAGER, "policy"),
            _kubelet(COMPONENT_CPU_MANAGER, "reconcile period"),
            _kubelet(COMPONENT_CONFIGURATION, "CPU"),
            _kubelet(COMPONENT_MEMORY_MANAGER, "policy"),
            _kubelet(COMPONENT_CONFIGURATION, "memory"),
            _kubelet(COMPONENT_TOPOLOGY_MANAGER, "policy"),
        ],
        id="empty",
    ),
    pytest.param(_good_conf(), None, [], id="correct"),
    pytest.param(
        _good_conf(topology_manager_policy=""),
        None,
        [_kubelet(COMPONENT_TOPOLOGY_MANAGER, "policy")],
        id="missing topology manager policy",
    ),
    pytest.param(
        _good_conf(topology_manager_policy="restricted"),
        None,
        [_kubelet(COMPONENT_TOPOLOGY_MANAGER, "policy")],
        id="wrong topology manager policy",
    ),
    pytest.param(
        KubeletConfiguration(
            memory_manager_policy=EXPECTED_MEMORY_MANAGER_POLICY,
            reserved_memory=[{"numaNode": 1}],
            topology_manager_policy=EXPECTED_TOPOLOGY_MANAGER_POLICY,
        ),
        None,
        [
            _kubelet(COMPONENT_CPU_MANAGER, "policy"),
            _kubelet(COMPONENT_CPU_MANAGER, "reconcile period"),
            _kubelet(COMPONENT_CONFIGURATION, "CPU"),
        ],
        id="missing cpumanager configuration",
    ),
    pytest.param(
        _good_conf(cpu_manager_reconcile_period=timedelta(seconds=30)),
        None,
        [_kubelet(COMPONENT_CPU_MANAGER, "reconcile period")],
        id="wrong cpumanager reconcile period",
    ),
    pytest.param(
        _good_conf(feature_gates={}),
        "v1.23.1",
        [],
        id="version recent enough, no feature gate",
    ),
]


@pytest.mark.parametrize("conf,node_version,expected", KUBELET_CASES)
def test_kubelet_validations(conf, node_version, expected):
    vd = Validator()
    got = vd.validate_node_kubelet_config(NODE, node_version, conf)
    assert sorted(_key(vr) for vr in got) == sorted(expected)


def test_reconcile_period_messages():
    got = validate_cluster_node_kubelet_config(NODE, None, KubeletConfiguration())
    [period] = [vr for vr in got if vr.setting == "reconcile period"]
    assert period.expected == "in range [1s, 10s]"
    assert period.detected == "0s"

    got = validate_cluster_node_kubelet_config(
        NODE, None, _good_conf(cpu_manager_reconcile_period=timedelta(seconds=90))
    )
    assert [vr.detected for vr in got] == ["1m30s"]


def test_validator_accumulates_cluster_results():
    vd = Validator()
    assert vd.validate_cluster_version_string("1.23") == []
    issues = vd.validate_cluster_version_string("1.10")
    assert len(issues) == 1
    assert vd.results() == issues
    assert vd.server_version == "1.10"