"""Build parameter spaces from a job configuration.

Three flavors feed the optimizers:

- ``build_full_space``: every tunable
- ``build_map_space``: tunables affecting map tasks (MAP + BOTH)
- ``build_reduce_space``: tunables affecting reduce tasks (REDUCE + BOTH)

Any key listed in ``mrtune.optimizer.exclude.parameters`` is left out.
Map-only jobs (``mapred.reduce.tasks = 0``) reduce to a single axis,
output compression, which then counts as a map-side parameter.

``adjust_space`` narrows the static domains to what a specific job on a
specific cluster can actually reach, using the projected profile:

- io.sort.mb: at most the heap left after the map function's own memory
- mapred.job.reduce.input.buffer.percent: at most the free heap fraction
- mapred.reduce.tasks: bounded by shuffle volume, group count, and slots
"""

from __future__ import annotations

import logging
import math

from mrtune._constants import MB
from mrtune.config import (
    COMBINE_CLASS_KEY,
    EXCLUDE_PARAMS_KEY,
    Configuration,
    num_reduce_tasks,
    task_memory,
)
from mrtune.models import ClusterModel, Counter, JobProfile, Statistic
from mrtune.models.profile import map_memory_required, reduce_memory_required

from .descriptors import (
    BooleanDescriptor,
    DoubleDescriptor,
    IntegerDescriptor,
    ListDescriptor,
)
from .parameter import Effect, Parameter
from .space import ParameterSpace

logger = logging.getLogger(__name__)

_MIN_SORT_MEMORY = 20 * MB
_MAX_MEMORY_RATIO = 0.75
_MAX_RED_IN_BUFF_PERC = 0.8
_MAX_RED_TASKS = 100

_MAP_SIDE = (
    Parameter.SORT_MB,
    Parameter.SPILL_PERC,
    Parameter.SORT_REC_PERC,
    Parameter.NUM_SPILLS_COMBINE,
)
_REDUCE_SIDE = (
    Parameter.RED_TASKS,
    Parameter.INMEM_MERGE,
    Parameter.SHUFFLE_IN_BUFF_PERC,
    Parameter.SHUFFLE_MERGE_PERC,
    Parameter.RED_IN_BUFF_PERC,
    Parameter.RED_SLOWSTART_MAPS,
    Parameter.COMPRESS_OUT,
)


# =============================================================================
# Exclusions
# =============================================================================


def excluded_parameters(conf: Configuration) -> set[str]:
    return set(conf.get_strings(EXCLUDE_PARAMS_KEY))


def exclude_parameters(conf: Configuration, *parameters: Parameter | str) -> None:
    """Append parameters (or raw keys) to the configuration's exclusion list."""
    current = conf.get_strings(EXCLUDE_PARAMS_KEY)
    for parameter in parameters:
        key = parameter.key if isinstance(parameter, Parameter) else parameter
        if key not in current:
            current.append(key)
    conf.set(EXCLUDE_PARAMS_KEY, ",".join(current))


def exclude_map_side(conf: Configuration) -> None:
    """Replace the exclusion list with every map-side parameter."""
    conf.set(EXCLUDE_PARAMS_KEY, ",".join(p.key for p in _MAP_SIDE))


def exclude_reduce_side(conf: Configuration) -> None:
    """Replace the exclusion list with every reduce-side parameter."""
    conf.set(EXCLUDE_PARAMS_KEY, ",".join(p.key for p in _REDUCE_SIDE))


# =============================================================================
# Space builders
# =============================================================================


def build_full_space(conf: Configuration) -> ParameterSpace:
    """All tunables of the job, minus exclusions."""
    exclude = excluded_parameters(conf)
    if num_reduce_tasks(conf) == 0:
        return _map_only_space(exclude)

    space = ParameterSpace()
    _add_map_parameters(space, conf, exclude)
    _add_reduce_parameters(space, exclude)
    _add_both_parameters(space, conf, exclude)
    return space


def build_map_space(conf: Configuration) -> ParameterSpace:
    """Tunables that change map task behavior."""
    exclude = excluded_parameters(conf)
    if num_reduce_tasks(conf) == 0:
        return _map_only_space(exclude)

    space = ParameterSpace()
    _add_map_parameters(space, conf, exclude)
    _add_both_parameters(space, conf, exclude)
    return space


def build_reduce_space(conf: Configuration) -> ParameterSpace:
    """Tunables that change reduce task behavior (empty for map-only jobs)."""
    exclude = excluded_parameters(conf)
    space = ParameterSpace()
    if num_reduce_tasks(conf) == 0:
        return space

    _add_reduce_parameters(space, exclude)
    _add_both_parameters(space, conf, exclude)
    return space


def build_next_job_space(conf: Configuration) -> ParameterSpace:
    """Tunables that shape the input of a downstream job.

    These are the reducer count, which sets the number of output files,
    and map-output compression.
    """
    exclude = excluded_parameters(conf)
    space = ParameterSpace()
    if num_reduce_tasks(conf) != 0 and Parameter.RED_TASKS.key not in exclude:
        space.add(IntegerDescriptor(Parameter.RED_TASKS, 1, _MAX_RED_TASKS))
    if Parameter.COMPRESS_MAP_OUT.key not in exclude:
        space.add(BooleanDescriptor(Parameter.COMPRESS_MAP_OUT))
    return space


def _map_only_space(exclude: set[str]) -> ParameterSpace:
    space = ParameterSpace()
    if Parameter.COMPRESS_OUT.key not in exclude:
        space.add(BooleanDescriptor(Parameter.COMPRESS_OUT, effect=Effect.MAP))
    return space


def _has_combiner(conf: Configuration) -> bool:
    return bool(conf.get(COMBINE_CLASS_KEY))


def _add_map_parameters(space: ParameterSpace, conf: Configuration, exclude: set[str]) -> None:
    max_sort_memory = max(int(_MAX_MEMORY_RATIO * task_memory(conf)), _MIN_SORT_MEMORY)

    if Parameter.SORT_MB.key not in exclude:
        space.add(
            IntegerDescriptor(
                Parameter.SORT_MB, _MIN_SORT_MEMORY // MB, max_sort_memory // MB
            )
        )
    if Parameter.SPILL_PERC.key not in exclude:
        space.add(DoubleDescriptor(Parameter.SPILL_PERC, 0.2, 0.9))
    if Parameter.SORT_REC_PERC.key not in exclude:
        space.add(DoubleDescriptor(Parameter.SORT_REC_PERC, 0.01, 0.5))
    if _has_combiner(conf) and Parameter.NUM_SPILLS_COMBINE.key not in exclude:
        space.add(ListDescriptor(Parameter.NUM_SPILLS_COMBINE, ["3", "9999"]))


def _add_reduce_parameters(space: ParameterSpace, exclude: set[str]) -> None:
    if Parameter.RED_TASKS.key not in exclude:
        space.add(IntegerDescriptor(Parameter.RED_TASKS, 1, _MAX_RED_TASKS))
    if Parameter.INMEM_MERGE.key not in exclude:
        space.add(IntegerDescriptor(Parameter.INMEM_MERGE, 10, 1000))
    if Parameter.SHUFFLE_IN_BUFF_PERC.key not in exclude:
        space.add(DoubleDescriptor(Parameter.SHUFFLE_IN_BUFF_PERC, 0.2, 0.9))
    if Parameter.SHUFFLE_MERGE_PERC.key not in exclude:
        space.add(DoubleDescriptor(Parameter.SHUFFLE_MERGE_PERC, 0.2, 0.9))
    if Parameter.RED_IN_BUFF_PERC.key not in exclude:
        space.add(DoubleDescriptor(Parameter.RED_IN_BUFF_PERC, 0.0, _MAX_RED_IN_BUFF_PERC))
    if Parameter.COMPRESS_OUT.key not in exclude:
        space.add(BooleanDescriptor(Parameter.COMPRESS_OUT))


def _add_both_parameters(space: ParameterSpace, conf: Configuration, exclude: set[str]) -> None:
    if Parameter.SORT_FACTOR.key not in exclude:
        space.add(IntegerDescriptor(Parameter.SORT_FACTOR, 2, 100))
    if Parameter.COMPRESS_MAP_OUT.key not in exclude:
        space.add(BooleanDescriptor(Parameter.COMPRESS_MAP_OUT))
    if _has_combiner(conf) and Parameter.COMBINE.key not in exclude:
        space.add(BooleanDescriptor(Parameter.COMBINE))


# =============================================================================
# Space adjustment
# =============================================================================


def adjust_space(
    space: ParameterSpace,
    profile: JobProfile,
    cluster: ClusterModel,
    conf: Configuration,
) -> None:
    """Tighten descriptor bounds in place for this job on this cluster.

    Args:
        space: Space to adjust (descriptors it lacks are skipped)
        profile: Projected (virtual) job profile
        cluster: Target cluster
        conf: Job configuration, for the per-task memory
    """
    memory = task_memory(conf)

    sort_mb = space.get(Parameter.SORT_MB) if Parameter.SORT_MB in space else None
    if isinstance(sort_mb, IntegerDescriptor):
        kinds = profile.map_profiles
        map_memory = sum(map_memory_required(p) for p in kinds) // len(kinds)
        sort_memory = memory - map_memory
        sort_memory = min(sort_memory, int(_MAX_MEMORY_RATIO * memory))
        sort_memory = max(sort_memory, _MIN_SORT_MEMORY)
        _set_max(sort_mb, sort_memory // MB)
        logger.debug("Adjusted %s to %s", Parameter.SORT_MB.key, sort_mb.domain)

    reduce_profile = profile.avg_reduce_profile
    red_in_buff = (
        space.get(Parameter.RED_IN_BUFF_PERC) if Parameter.RED_IN_BUFF_PERC in space else None
    )
    if isinstance(red_in_buff, DoubleDescriptor):
        percent = (memory - reduce_memory_required(reduce_profile)) / memory
        percent = min(max(percent, 0.0), _MAX_RED_IN_BUFF_PERC)
        _set_max(red_in_buff, percent)
        logger.debug("Adjusted %s to %s", Parameter.RED_IN_BUFF_PERC.key, red_in_buff.domain)

    if Parameter.RED_TASKS in space and reduce_profile is not None:
        n = reduce_profile.num_tasks
        shuffle = (
            n
            * reduce_profile.counter(Counter.REDUCE_SHUFFLE_BYTES)
            / (reduce_profile.statistic(Statistic.INTERM_COMPRESS_RATIO, 1.0) or 1.0)
        )
        groups = n * reduce_profile.counter(Counter.REDUCE_INPUT_GROUPS, 1)

        low = max(1, math.ceil(shuffle / (2 * memory)))
        high = math.ceil(4 * shuffle / memory)
        high = min(high, groups)
        high = max(high, cluster.total_reduce_slots)
        high = max(high, low)

        space.add(IntegerDescriptor(Parameter.RED_TASKS, low, high))
        logger.debug("Adjusted %s to [%d, %d]", Parameter.RED_TASKS.key, low, high)


def _set_max(descriptor: IntegerDescriptor | DoubleDescriptor, value: float) -> None:
    # Keep the domain valid when the new max falls below the static min
    if value < descriptor.min_value:
        descriptor.min_value = value
    descriptor.max_value = value
