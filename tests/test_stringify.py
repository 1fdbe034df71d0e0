import pytest

from tasdeployer.stringify import (
    NodeResourceTopology,
    ResourceInfo,
    Zone,
    clone_resource_info_list,
    node_resource_topology,
    node_resource_topology_list,
    resource_info,
    resource_info_list,
    zone,
)


@pytest.mark.parametrize(
    "res_info,expected",
    [
        (ResourceInfo(), "=0/0/0"),
        (ResourceInfo(name="dev1", available="3"), "dev1=0/0/3"),
        (ResourceInfo(name="dev2", capacity="10", allocatable="9", available="4"), "dev2=10/9/4"),
    ],
    ids=["empty", "only-available", "fully-init"],
)
def test_resource_info(res_info, expected):
    assert resource_info(res_info) == expected


@pytest.mark.parametrize(
    "res_infos,expected",
    [
        ([], ""),
        ([ResourceInfo("dev1", "10", "9", "4")], "dev1=10/9/4"),
        (
            [
                ResourceInfo("dev2", "10", "9", "4"),
                ResourceInfo("dev3", "10", "10", "10"),
                ResourceInfo("dev4", "10", "8", "1"),
            ],
            "dev2=10/9/4,dev3=10/10/10,dev4=10/8/1",
        ),
    ],
    ids=["empty", "only-one", "proper-list"],
)
def test_resource_info_list(res_infos, expected):
    assert resource_info_list(res_infos) == expected


def test_resource_info_list_sorts_without_touching_input():
    infos = [ResourceInfo("b", "1", "1", "1"), ResourceInfo("a", "2", "2", "2")]
    assert resource_info_list(infos) == "a=2/2/2,b=1/1/1"
    assert [ri.name for ri in infos] == ["b", "a"]


def test_clone_resource_info_list_is_independent():
    original = [ResourceInfo("dev1", "10", "9", "4")]
    cloned = clone_resource_info_list(original)
    assert cloned == original
    cloned[0].available = "0"
    assert original[0].available == "4"


@pytest.mark.parametrize(
    "z,expected",
    [
        (Zone(), "<MISSING> [N/A]: N/A"),
        (
            Zone(
                name="test-zone",
                type="testable",
                parent="will-not-be-stringified",
                resources=[ResourceInfo("dev1", "10", "9", "4")],
            ),
            "test-zone [testable]: dev1=10/9/4",
        ),
    ],
    ids=["empty", "only-one"],
)
def test_zone(z, expected):
    assert zone(z) == expected


def test_node_resource_topology_empty():
    assert node_resource_topology(NodeResourceTopology()) == "<MISSING> policy=N/A, scope=N/A\n"


def test_node_resource_topology_with_attributes_and_zones():
    nrt = NodeResourceTopology(
        name="node-0",
        attributes={"topologyManagerPolicy": "single-numa-node", "topologyManagerScope": "pod"},
        zones=[Zone(name="node-0", type="Node")],
    )
    assert node_resource_topology(nrt) == (
        "node-0 policy=single-numa-node, scope=pod\n- zone: node-0 [Node]: N/A\n"
    )


def test_node_resource_topology_list():
    assert node_resource_topology_list([NodeResourceTopology()], "foo") == (
        "NRT BEGIN dump foo\n<MISSING> policy=N/A, scope=N/A\nNRT END dump\n"
    )
    assert node_resource_topology_list([], "") == "NRT BEGIN dump\nNRT END dump\n"