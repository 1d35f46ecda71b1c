"""Read-only data models: clusters, job profiles, synthetic executions."""

from .cluster import (
    ClusterModel,
    Host,
    Rack,
    TaskTracker,
    cluster_from_configuration,
    load_cluster,
    save_cluster,
    synthesize_cluster,
)
from .execution import SyntheticJobExecution, Task, TaskAttempt, TaskKind
from .profile import (
    Counter,
    JobProfile,
    MapProfile,
    ReduceProfile,
    Statistic,
    TaskPhase,
    TaskProfile,
    load_job_profile,
    map_memory_required,
    reduce_memory_required,
    save_job_profile,
)

__all__ = [
    # Cluster
    "ClusterModel",
    "Host",
    "Rack",
    "TaskTracker",
    "cluster_from_configuration",
    "load_cluster",
    "save_cluster",
    "synthesize_cluster",
    # Execution
    "SyntheticJobExecution",
    "Task",
    "TaskAttempt",
    "TaskKind",
    # Profile
    "Counter",
    "JobProfile",
    "MapProfile",
    "ReduceProfile",
    "Statistic",
    "TaskPhase",
    "TaskProfile",
    "load_job_profile",
    "map_memory_required",
    "reduce_memory_required",
    "save_job_profile",
]
