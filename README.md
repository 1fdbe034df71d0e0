# tasdeployer

Helpers for preparing and checking the pieces of a topology-aware scheduling
setup on Kubernetes: the scheduler plugin, its controller and the resource
topology exporter.

Manifests are handled as plain Python dictionaries, the same shape you get
from loading a Kubernetes YAML document with `yaml.safe_load`. Functions that
update a manifest change the dictionary in place.

## Installation

```
pip install tasdeployer
```

## Modules

### `tasdeployer.objectupdate`

- `set_pod_scheduler_affinity_on_control_plane(pod_spec)` adds `NoSchedule`
  tolerations for the `node-role.kubernetes.io/control-plane` and
  `node-role.kubernetes.io/master` keys (unless a toleration with that key is
  already there) and, when none is set, a required node affinity on the
  control-plane label. It returns the updated spec; `None` is passed through.
- `find_container_by_name(containers, name)` returns the container dictionary
  itself (so changes to it show in the pod), or `None`.
- `role_for_leader_election(role, namespace, resource_name)` sets the Role's
  namespace (an empty namespace removes it) and pins the `resourceNames` of
  the core `endpoints` and `coordination.k8s.io` `leases` rules.
- `role_binding(binding, service_account, namespace)` and
  `cluster_role_binding(binding, service_account, namespace)` set the
  namespace of every subject and, when `service_account` is not empty, its
  name.
- `make_machine_config_name(name)` returns `"51-<name>"`.
- `make_security_context_constraint_name(service_account)` returns
  `"system:serviceaccount:<namespace>:<name>"`, and
  `security_context_constraint(scc, service_account)` adds that user to the
  SCC's `users` unless it is already listed.

### `tasdeployer.rte`

- `container_config(pod_spec, container, config_map_name)` mounts the named
  ConfigMap (as optional) at `/etc/resource-topology-exporter/`.
- `metrics_port(daemon_set, port)` finds the `resource-topology-exporter`
  container, sets its `METRICS_PORT` environment value and replaces its ports
  with a single `metrics-port`. Without that container nothing changes.

### `tasdeployer.schedrender`

- `render_config(data, scheduler_name, params)` applies a `ConfigParams` to
  the profile whose `schedulerName` matches: profile renaming, leader
  election, cache resync period, cache options and scoring strategy of the
  `NodeResourceTopologyMatch` plugin. It returns the rendered YAML (of the
  same type, `str` or `bytes`, as `data`) and whether anything was updated.
  With no scheduler name or no parameters, or when the expected structure is
  missing, the input comes back unchanged. A resync period of zero or less is
  dropped from the output.
- `scheduler_config(config_map, scheduler_name, params)` does the same for the
  `scheduler-config.yaml` key of a ConfigMap.
- Parameters are described by `ConfigParams`, `CacheParams`,
  `ScoringStrategyParams`, `ResourceSpecParams` and `LeaderElectionParams`.
  `validate_cache_resync_method`, `validate_foreign_pods_detect_mode`,
  `validate_cache_informer_mode` and `validate_scoring_strategy_type` check
  single values. Unparsable YAML, fields of the wrong type, unsupported values
  and ConfigMaps without the configuration raise `RenderError`.

### `tasdeployer.validator`

- `validate_cluster_version(version)` reports a `ValidationResult` when the
  version cannot be parsed or is older than 1.21.
- `validate_cluster_node_kubelet_config(node_name, node_version, kubelet_conf)`
  checks a `KubeletConfiguration`: static CPU manager policy, a CPU manager
  reconcile period between 1s and 10s, reserved system CPUs, `Static` memory
  manager policy, reserved memory and the `single-numa-node` topology manager
  policy.
- `Validator` wraps both: `validate_cluster_version_string` stores the version
  in `server_version` and adds the issues to `results()`;
  `validate_node_kubelet_config` logs a summary for the node and returns the
  issues.
- `str(ValidationResult)` gives a one-line description of the issue.

### `tasdeployer.stringify`

`resource_info`, `resource_info_list`, `zone`, `node_resource_topology` and
`node_resource_topology_list` turn `ResourceInfo`, `Zone` and
`NodeResourceTopology` objects into short text; `clone_resource_info_list`
copies a list of resource infos. Quantities are kept and shown as the strings
they were given.

### `tasdeployer.options`

The option sets `Options`, `API`, `Scheduler`, `DaemonSet`, `UpdaterDaemon`,
`Updater` and `Render`, the `SCCVersion` enum, `is_valid_scc_version` and
`for_daemon_set`, which derives the updater `DaemonSet` options from
`Options`.

## Example

```python
import yaml

from tasdeployer.objectupdate import set_pod_scheduler_affinity_on_control_plane
from tasdeployer.schedrender import CacheParams, ConfigParams, render_config
from tasdeployer.validator import validate_cluster_version

pod_spec = {}
set_pod_scheduler_affinity_on_control_plane(pod_spec)
print(yaml.safe_dump(pod_spec))

with open("scheduler-config.yaml", "rb") as fh:
    data = fh.read()
params = ConfigParams(cache=CacheParams(resync_period_seconds=42))
new_data, updated = render_config(data, "topology-aware-scheduler", params)

for issue in validate_cluster_version("v1.20.0"):
    print(issue)
```

## What it does not do

This is a library working on data you hand it. It does not connect to a
cluster, create, wait for or delete objects, read kubelet configuration from
nodes, or ship the component manifests themselves, and it has no command-line
tool.

## Running the tests

```
pip install -e ".[test]"
pytest
```