"""Cluster model: racks of hosts, each running task trackers with slots.

The scheduler only looks at the flattened tracker list; racks and hosts
exist so cluster documents round-trip and reports can show placement.

Example YAML::

    name: sim-cluster
    racks:
      - name: rack_001
        hosts:
          - name: rack_001_host_001
            trackers:
              - name: task_tracker_rack_001_host_001
                host: rack_001_host_001
                num_map_slots: 2
                num_reduce_slots: 2
                max_task_memory: 209715200
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, model_validator

from mrtune.config import (
    CLUSTER_HOSTS_PER_RACK_KEY,
    CLUSTER_RACKS_KEY,
    DEFAULT_SLOTS_PER_TRACKER,
    MAP_SLOTS_KEY,
    REDUCE_SLOTS_KEY,
    Configuration,
    task_memory,
)
from mrtune.config.loader import load_document, save_document

logger = logging.getLogger(__name__)

DEFAULT_TRACKER_PORT = 50060


class TaskTracker(BaseModel):
    """A worker daemon offering map and reduce slots."""

    model_config = ConfigDict(extra="forbid")

    name: str
    host: str
    port: int = DEFAULT_TRACKER_PORT
    num_map_slots: int = Field(default=DEFAULT_SLOTS_PER_TRACKER, ge=0)
    num_reduce_slots: int = Field(default=DEFAULT_SLOTS_PER_TRACKER, ge=0)
    max_task_memory: int = Field(gt=0)


class Host(BaseModel):
    """A physical machine."""

    model_config = ConfigDict(extra="forbid")

    name: str
    ip_address: str = ""
    trackers: list[TaskTracker] = Field(default_factory=list)


class Rack(BaseModel):
    """A group of hosts."""

    model_config = ConfigDict(extra="forbid")

    name: str
    hosts: list[Host] = Field(default_factory=list)


class ClusterModel(BaseModel):
    """Read-only description of a cluster's task capacity."""

    model_config = ConfigDict(extra="forbid")

    name: str = "cluster"
    racks: list[Rack] = Field(default_factory=list)

    @model_validator(mode="after")
    def unique_names(self) -> ClusterModel:
        """Rack, host, and tracker names must each be unique."""
        for level, names in (
            ("rack", [r.name for r in self.racks]),
            ("host", [h.name for r in self.racks for h in r.hosts]),
            ("tracker", [t.name for t in self.trackers]),
        ):
            seen: set[str] = set()
            for name in names:
                if name in seen:
                    raise ValueError(f"duplicate {level} name '{name}'")
                seen.add(name)
        return self

    @property
    def trackers(self) -> list[TaskTracker]:
        return [t for rack in self.racks for host in rack.hosts for t in host.trackers]

    @property
    def num_hosts(self) -> int:
        return sum(len(rack.hosts) for rack in self.racks)

    @property
    def total_map_slots(self) -> int:
        return sum(t.num_map_slots for t in self.trackers)

    @property
    def total_reduce_slots(self) -> int:
        return sum(t.num_reduce_slots for t in self.trackers)

    @property
    def max_task_memory(self) -> int:
        """Largest per-task memory offered by any tracker (0 for an empty cluster)."""
        return max((t.max_task_memory for t in self.trackers), default=0)


def synthesize_cluster(
    name: str,
    num_racks: int,
    hosts_per_rack: int,
    map_slots: int,
    reduce_slots: int,
    max_task_memory: int,
) -> ClusterModel:
    """Build a uniform cluster of ``num_racks`` x ``hosts_per_rack`` hosts.

    Every host runs one task tracker with the same slot counts and memory.
    Names follow ``rack_001``, ``rack_001_host_001``, and
    ``task_tracker_rack_001_host_001``.

    Args:
        name: Cluster name
        num_racks: Number of racks (>= 1)
        hosts_per_rack: Hosts on each rack (>= 1)
        map_slots: Map slots per tracker
        reduce_slots: Reduce slots per tracker
        max_task_memory: Per-task memory in bytes

    Returns:
        The synthesized ClusterModel
    """
    if num_racks < 1 or hosts_per_rack < 1:
        raise ValueError("a synthesized cluster needs at least one rack and one host per rack")

    racks = []
    for rack_id in range(1, num_racks + 1):
        rack_name = f"rack_{rack_id:03d}"
        hosts = []
        for host_id in range(1, hosts_per_rack + 1):
            host_name = f"{rack_name}_host_{host_id:03d}"
            tracker = TaskTracker(
                name=f"task_tracker_{host_name}",
                host=host_name,
                num_map_slots=map_slots,
                num_reduce_slots=reduce_slots,
                max_task_memory=max_task_memory,
            )
            hosts.append(Host(name=host_name, trackers=[tracker]))
        racks.append(Rack(name=rack_name, hosts=hosts))

    cluster = ClusterModel(name=name, racks=racks)
    logger.debug(
        "Synthesized cluster %s: %d hosts, %d map / %d reduce slots",
        name,
        cluster.num_hosts,
        cluster.total_map_slots,
        cluster.total_reduce_slots,
    )
    return cluster


def cluster_from_configuration(conf: Configuration, name: str = "cluster") -> ClusterModel:
    """Synthesize a cluster from the slot and sizing keys of a job configuration."""
    return synthesize_cluster(
        name=name,
        num_racks=conf.get_int(CLUSTER_RACKS_KEY, 1),
        hosts_per_rack=conf.get_int(CLUSTER_HOSTS_PER_RACK_KEY, 1),
        map_slots=conf.get_int(MAP_SLOTS_KEY, DEFAULT_SLOTS_PER_TRACKER),
        reduce_slots=conf.get_int(REDUCE_SLOTS_KEY, DEFAULT_SLOTS_PER_TRACKER),
        max_task_memory=task_memory(conf),
    )


def load_cluster(path: str | Path) -> ClusterModel:
    """Load and validate a cluster document.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    return load_document(ClusterModel, path, "Cluster")


def save_cluster(cluster: ClusterModel, path: str | Path) -> None:
    save_document(cluster, path)
