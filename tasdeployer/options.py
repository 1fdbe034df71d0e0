"""Option sets driving deployment and rendering of the topology-aware components."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Any


class SCCVersion(str, Enum):
    """Version of the SecurityContextConstraints flavour to use."""

    V1 = "v1"
    V2 = "v2"


def is_valid_scc_version(ver: str) -> bool:
    """Tell whether ``ver`` names a known SCC version."""
    return ver in {version.value for version in SCCVersion}


LabelSelector = dict[str, Any]


@dataclass
class Options:
    """Options shared by all the commands."""

    user_platform: str = ""
    user_platform_version: str = ""
    replicas: int = 0
    rte_config_data: str = ""
    pull_if_not_present: bool = False
    updater_type: str = ""
    updater_pfp_enable: bool = False
    updater_notif_enable: bool = False
    updater_cri_hooks_enable: bool = False
    updater_custom_selinux_policy: bool = False
    updater_scc_version: SCCVersion | None = None
    updater_sync_period: timedelta = timedelta(0)
    updater_verbose: int = 0
    sched_profile_name: str = ""
    sched_resync_period: timedelta = timedelta(0)
    sched_verbose: int = 0
    sched_ctrl_plane_affinity: bool = False
    sched_leader_elect_resource: str = ""
    wait_interval: timedelta = timedelta(0)
    wait_timeout: timedelta = timedelta(0)
    cluster_platform: str = ""
    cluster_version: str = ""
    wait_completion: bool = False
    sched_scoring_strat_config_data: str = ""
    sched_cache_params_config_data: str = ""


@dataclass
class API:
    platform: str = ""


@dataclass
class Scheduler:
    platform: str = ""
    wait_completion: bool = False
    replicas: int = 0
    profile_name: str = ""
    pull_if_not_present: bool = False
    cache_resync_period: timedelta = timedelta(0)
    ctrl_plane_affinity: bool = False
    leader_election: bool = False
    leader_election_resource: str = ""
    verbose: int = 0
    scoring_strat_config_data: str = ""
    cache_params_config_data: str = ""
    namespace: str = ""


@dataclass
class DaemonSet:
    verbose: int = 0
    pull_if_not_present: bool = False
    pfp_enable: bool = False
    notification_enable: bool = False
    node_selector: LabelSelector | None = None
    update_interval: timedelta = timedelta(0)
    scc_version: SCCVersion | None = None


@dataclass
class UpdaterDaemon:
    daemon_set: DaemonSet
    machine_config_pool_selector: LabelSelector | None = None
    config_data: str = ""
    namespace: str = ""
    name: str = ""


@dataclass
class Updater:
    daemon_set: DaemonSet
    platform: str = ""
    platform_version: str = ""
    wait_completion: bool = False
    rte_config_data: str = ""
    enable_cri_hooks: bool = False
    custom_selinux_policy: bool = False


@dataclass
class Render:
    platform: str = ""
    platform_version: str = ""
    namespace: str = ""
    enable_cri_hooks: bool = False
    custom_selinux_policy: bool = False


def for_daemon_set(common_opts: Options) -> DaemonSet:
    """Derive the updater daemonset options from the common ones."""
    return DaemonSet(
        pull_if_not_present=common_opts.pull_if_not_present,
        pfp_enable=common_opts.updater_pfp_enable,
        notification_enable=common_opts.updater_notif_enable,
        update_interval=common_opts.updater_sync_period,
        scc_version=common_opts.updater_scc_version,
        verbose=common_opts.updater_verbose,
    )