"""Rendering of the topology-aware scheduler configuration."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, MutableMapping

import yaml

log = logging.getLogger(__name__)

SCHEDULER_CONFIG_FILE_NAME = "scheduler-config.yaml"
SCHEDULER_PLUGIN_NAME = "NodeResourceTopologyMatch"

CACHE_RESYNC_AUTODETECT = "Autodetect"
CACHE_RESYNC_ALL = "All"
CACHE_RESYNC_ONLY_EXCLUSIVE_RESOURCES = "OnlyExclusiveResources"

FOREIGN_PODS_DETECT_NONE = "None"
FOREIGN_PODS_DETECT_ALL = "All"
FOREIGN_PODS_DETECT_ONLY_EXCLUSIVE_RESOURCES = "OnlyExclusiveResources"

CACHE_INFORMER_SHARED = "Shared"
CACHE_INFORMER_DEDICATED = "Dedicated"

SCORING_STRATEGY_MOST_ALLOCATED = "MostAllocated"
SCORING_STRATEGY_BALANCED_ALLOCATION = "BalancedAllocation"
SCORING_STRATEGY_LEAST_ALLOCATED = "LeastAllocated"
SCORING_STRATEGY_LEAST_NUMA_NODES = "LeastNUMANodes"

_CACHE_RESYNC_METHODS = (
    CACHE_RESYNC_AUTODETECT,
    CACHE_RESYNC_ALL,
    CACHE_RESYNC_ONLY_EXCLUSIVE_RESOURCES,
)
_FOREIGN_PODS_DETECT_MODES = (
    FOREIGN_PODS_DETECT_NONE,
    FOREIGN_PODS_DETECT_ALL,
    FOREIGN_PODS_DETECT_ONLY_EXCLUSIVE_RESOURCES,
)
_CACHE_INFORMER_MODES = (CACHE_INFORMER_SHARED, CACHE_INFORMER_DEDICATED)
_SCORING_STRATEGY_TYPES = (
    SCORING_STRATEGY_MOST_ALLOCATED,
    SCORING_STRATEGY_BALANCED_ALLOCATION,
    SCORING_STRATEGY_LEAST_ALLOCATED,
    SCORING_STRATEGY_LEAST_NUMA_NODES,
)


class RenderError(ValueError):
    """The scheduler configuration or its parameters cannot be processed."""


@dataclass
class CacheParams:
    resync_period_seconds: int | None = None
    resync_method: str | None = None
    foreign_pods_detect_mode: str | None = None
    informer_mode: str | None = None


@dataclass
class ResourceSpecParams:
    name: str
    weight: int


@dataclass
class ScoringStrategyParams:
    type: str = ""
    resources: list[ResourceSpecParams] = field(default_factory=list)


@dataclass
class LeaderElectionParams:
    leader_elect: bool = False
    resource_namespace: str = ""
    resource_name: str = ""


@dataclass
class ConfigParams:
    profile_name: str = ""
    cache: CacheParams | None = None
    scoring_strategy: ScoringStrategyParams | None = None
    leader_election: LeaderElectionParams | None = None


def _check_choice(kind: str, value: str, allowed: tuple[str, ...]) -> None:
    if value not in allowed:
        raise RenderError(f"unsupported {kind}: {value!r} (expected one of {', '.join(allowed)})")


def validate_cache_resync_method(value: str) -> None:
    _check_choice("cache resync method", value, _CACHE_RESYNC_METHODS)


def validate_foreign_pods_detect_mode(value: str) -> None:
    _check_choice("foreign pods detect mode", value, _FOREIGN_PODS_DETECT_MODES)


def validate_cache_informer_mode(value: str) -> None:
    _check_choice("cache informer mode", value, _CACHE_INFORMER_MODES)


def validate_scoring_strategy_type(value: str) -> None:
    _check_choice("scoring strategy type", value, _SCORING_STRATEGY_TYPES)


_MISSING = object()


def _nested(obj: MutableMapping[str, Any], key: str, kind: type) -> Any:
    """Return ``obj[key]`` if it has type ``kind``, None if absent; raise on a wrong type."""
    value = obj.get(key, _MISSING)
    if value is _MISSING:
        return None
    if not isinstance(value, kind):
        raise RenderError(f"field {key!r} has type {type(value).__name__}, expected {kind.__name__}")
    return value


def _nested_copy(obj: MutableMapping[str, Any], key: str) -> dict[str, Any]:
    value = _nested(obj, key, dict)
    return {} if value is None else dict(value)


def _strip_trailing_blanks(text: str) -> str:
    # trailing tabs are harmless in YAML but some parsers reject them
    return "\n".join(line.rstrip(" \t") for line in text.split("\n"))


def _update_leader_election(lead: dict[str, Any], params: LeaderElectionParams) -> None:
    lead["leaderElect"] = params.leader_elect
    lead["resourceName"] = params.resource_name
    lead["resourceNamespace"] = params.resource_namespace


def _update_cache_args(cache_args: dict[str, Any], cache: CacheParams) -> int:
    updated = 0
    if cache.resync_method is not None:
        validate_cache_resync_method(cache.resync_method)
        cache_args["resyncMethod"] = cache.resync_method
        updated += 1
    if cache.foreign_pods_detect_mode is not None:
        validate_foreign_pods_detect_mode(cache.foreign_pods_detect_mode)
        cache_args["foreignPodsDetect"] = cache.foreign_pods_detect_mode
        updated += 1
    if cache.informer_mode is not None:
        validate_cache_informer_mode(cache.informer_mode)
        cache_args["informerMode"] = cache.informer_mode
        updated += 1
    return updated


def _update_scoring_strategy_args(scoring_args: dict[str, Any], scoring: ScoringStrategyParams) -> int:
    updated = 0
    if scoring.type:
        validate_scoring_strategy_type(scoring.type)
        scoring_args["type"] = scoring.type
        updated += 1
    if scoring.resources:
        scoring_args["resources"] = [{"name": res.name, "weight": res.weight} for res in scoring.resources]
        updated += 1
    return updated


def _ensure_backward_compatibility(args: dict[str, Any]) -> None:
    resync_period = args.get("cacheResyncPeriodSeconds")
    if isinstance(resync_period, int) and not isinstance(resync_period, bool) and resync_period <= 0:
        del args["cacheResyncPeriodSeconds"]


def _update_args(args: dict[str, Any], params: ConfigParams) -> bool:
    updated = 0
    cache = params.cache
    if cache is not None and cache.resync_period_seconds is not None:
        args["cacheResyncPeriodSeconds"] = cache.resync_period_seconds
        updated += 1

    cache_args = _nested_copy(args, "cache")
    if cache is not None:
        cache_updated = _update_cache_args(cache_args, cache)
        if cache_updated:
            args["cache"] = cache_args
            updated += cache_updated

    scoring_args = _nested_copy(args, "scoringStrategy")
    if params.scoring_strategy is not None:
        scoring_updated = _update_scoring_strategy_args(scoring_args, params.scoring_strategy)
        if scoring_updated:
            args["scoringStrategy"] = scoring_args
            updated += scoring_updated

    _ensure_backward_compatibility(args)
    return updated > 0


def render_config(
    data: str | bytes, scheduler_name: str, params: ConfigParams | None
) -> tuple[str | bytes, bool]:
    """Apply ``params`` to the profile named ``scheduler_name``.

    Returns the rendered configuration, of the same type as ``data``, and
    whether anything was updated. Configurations lacking the expected
    structure are passed through unchanged.
    """
    if not scheduler_name or params is None:
        log.info("missing parameters, passing through: schedulerName=%r params=%r", scheduler_name, params)
        return data, False

    text = data.decode("utf-8") if isinstance(data, bytes) else data
    try:
        config = yaml.safe_load(_strip_trailing_blanks(text))
    except yaml.YAMLError as err:
        raise RenderError(f"cannot unmarshal scheduler config: {err}") from err
    if config is None:
        return data, False
    if not isinstance(config, dict):
        raise RenderError("scheduler config is not a mapping")

    updated = False

    if params.leader_election is not None:
        lead = _nested(config, "leaderElection", dict)
        if lead is None:
            return data, False
        _update_leader_election(lead, params.leader_election)
        updated = True

    profiles = _nested(config, "profiles", list)
    if profiles is None:
        return data, False
    for profile in profiles:
        if not isinstance(profile, dict):
            log.info("unexpected profile data")
            return data, False
        profile_name = _nested(profile, "schedulerName", str)
        if profile_name is None:
            return data, False
        if profile_name != scheduler_name:
            continue

        if params.profile_name:
            profile["schedulerName"] = params.profile_name
            updated = True

        plugin_configs = _nested(profile, "pluginConfig", list)
        if plugin_configs is None:
            return data, False
        for plugin_conf in plugin_configs:
            if not isinstance(plugin_conf, dict):
                log.info("unexpected profile config data")
                return data, False
            plugin_name = _nested(plugin_conf, "name", str)
            if plugin_name is None:
                return data, False
            if plugin_name != SCHEDULER_PLUGIN_NAME:
                continue
            args = _nested(plugin_conf, "args", dict)
            if args is None:
                return data, False
            if _update_args(args, params):
                updated = True

    rendered = yaml.safe_dump(config, default_flow_style=False, sort_keys=True)
    if isinstance(data, bytes):
        return rendered.encode("utf-8"), updated
    return rendered, updated


def scheduler_config(
    config_map: MutableMapping[str, Any], scheduler_name: str, params: ConfigParams | None
) -> None:
    """Render the scheduler configuration held in a ConfigMap, in place."""
    metadata = config_map.get("metadata") or {}
    where = f"{metadata.get('namespace', '')}/{metadata.get('name', '')}"
    cm_data = config_map.get("data")
    if cm_data is None:
        raise RenderError(f"no data found in ConfigMap: {where}")
    if SCHEDULER_CONFIG_FILE_NAME not in cm_data:
        raise RenderError(f"no data key named: {SCHEDULER_CONFIG_FILE_NAME} found in ConfigMap: {where}")
    new_data, _ = render_config(cm_data[SCHEDULER_CONFIG_FILE_NAME], scheduler_name, params)
    cm_data[SCHEDULER_CONFIG_FILE_NAME] = new_data