"""Profile oracles: predict a job's profile under a hypothetical configuration.

The optimizers and the what-if engine only depend on the ``ProfileOracle``
protocol. ``ScalingProfileOracle`` is a deterministic analytic model built
from one profiled run; it captures the first-order effect of every tunable
in the catalog:

- map phases scale with the split size relative to the profiled run
- io.sort.mb, io.sort.spill.percent and io.sort.record.percent decide the
  number of spills; io.sort.factor decides the merge passes over them
- the combiner and map-output compression shrink intermediate data at a
  CPU cost
- reduce phases scale with the bytes each reducer shuffles, with extra
  merge passes once the shuffle overflows the in-memory buffer and a read
  saving from the reduce input buffer
- output compression trades written bytes for CPU
"""

from __future__ import annotations

import logging
import math
from typing import Protocol

from mrtune._constants import MB
from mrtune.config import COMBINE_CLASS_KEY, Configuration, num_reduce_tasks, task_memory
from mrtune.models import (
    Counter,
    JobProfile,
    MapProfile,
    ReduceProfile,
    Statistic,
    TaskPhase,
)
from mrtune.params import Parameter

from .dataset import DatasetModel, InputSpec, ShuffleSpec

logger = logging.getLogger(__name__)

# Bytes of accounting data per record in the sort buffer
_RECORD_META_BYTES = 16
# Fixed cost of opening, sorting and closing one spill file (ms)
_SPILL_OVERHEAD_MS = 25.0
# Extra CPU spent compressing, relative to writing the raw bytes
_COMPRESS_CPU_FACTOR = 0.35
# CPU spent running the combiner, relative to spilling the raw bytes
_COMBINE_CPU_FACTOR = 0.15


class ProjectionError(Exception):
    """Raised when a profile cannot be projected for a configuration."""

    pass


class ProfileOracle(Protocol):
    """Anything that can predict a job profile for a configuration."""

    def project(self, conf: Configuration, dataset: DatasetModel) -> JobProfile: ...

    def set_ignore_reducers(self, ignore: bool) -> None: ...


def _param_int(conf: Configuration, parameter: Parameter) -> int:
    return conf.get_int(parameter.key, int(parameter.default))


def _param_float(conf: Configuration, parameter: Parameter) -> float:
    return conf.get_float(parameter.key, float(parameter.default))


def _param_bool(conf: Configuration, parameter: Parameter) -> bool:
    return conf.get_bool(parameter.key, parameter.default == "true")


def _ratio(numerator: float, denominator: float, fallback: float = 1.0) -> float:
    return numerator / denominator if denominator > 0 else fallback


class ScalingProfileOracle:
    """Project a profiled run onto new configurations and data sizes.

    Usage::

        oracle = ScalingProfileOracle(profile)
        projected = oracle.project(conf, ProfileDatasetModel(profile))
    """

    def __init__(self, base_profile: JobProfile) -> None:
        self.base_profile = base_profile
        self.ignore_reducers = False

    def set_ignore_reducers(self, ignore: bool) -> None:
        self.ignore_reducers = ignore

    def project(self, conf: Configuration, dataset: DatasetModel) -> JobProfile:
        """Predict the job profile for ``conf`` on the dataset's inputs.

        Raises:
            ProjectionError: If the dataset yields no map input
        """
        specs = [s for s in dataset.map_input_specs(conf) if s.num_splits > 0]
        if not specs:
            raise ProjectionError(f"No map input for job {self.base_profile.job_id}")

        map_only = num_reduce_tasks(conf) == 0
        maps = [self._project_map(spec, conf, map_only) for spec in specs]

        reduces: list[ReduceProfile] = []
        if not map_only and not self.ignore_reducers:
            shuffle = dataset.shuffle_spec(conf, maps)
            reduces.append(self._project_reduce(shuffle, conf))

        counters = {
            Counter.MAP_TASKS: sum(m.num_tasks for m in maps),
            Counter.REDUCE_TASKS: sum(r.num_tasks for r in reduces),
        }
        projected = JobProfile(
            job_id=self.base_profile.job_id,
            job_name=self.base_profile.job_name,
            counters=counters,
            map_profiles=maps,
            reduce_profiles=reduces,
        )
        logger.debug(
            "Projected %s: %d maps, %d reduces",
            projected.job_id,
            projected.num_map_tasks,
            projected.num_reduce_tasks,
        )
        return projected

    # ------------------------------------------------------------------
    # Map side
    # ------------------------------------------------------------------

    def _project_map(self, spec: InputSpec, conf: Configuration, map_only: bool) -> MapProfile:
        base = self.base_profile.map_profile_for(spec.input_index)
        if base is None:
            base = self.base_profile.avg_map_profile

        base_input = base.counter(Counter.HDFS_BYTES_READ) or base.counter(Counter.MAP_INPUT_BYTES)
        scale = _ratio(spec.avg_split_size, base_input)

        input_bytes = spec.avg_split_size
        if spec.compressed:
            input_bytes = round(
                spec.avg_split_size / (base.statistic(Statistic.INPUT_COMPRESS_RATIO, 1.0) or 1.0)
            )
        input_records = base.counter(Counter.MAP_INPUT_RECORDS) * scale
        out_bytes = base.counter(Counter.MAP_OUTPUT_BYTES) * scale
        if not out_bytes:
            out_bytes = input_bytes * base.statistic(Statistic.MAP_SIZE_SEL, 1.0)
        out_records = base.counter(Counter.MAP_OUTPUT_RECORDS) * scale
        if not out_records:
            out_records = input_records * base.statistic(Statistic.MAP_PAIRS_SEL, 1.0)

        timings = {
            TaskPhase.SETUP: base.timing(TaskPhase.SETUP),
            TaskPhase.READ: base.timing(TaskPhase.READ) * scale,
            TaskPhase.MAP: base.timing(TaskPhase.MAP) * scale,
            TaskPhase.COLLECT: base.timing(TaskPhase.COLLECT) * scale,
            TaskPhase.CLEANUP: base.timing(TaskPhase.CLEANUP),
        }
        counters = {
            Counter.HDFS_BYTES_READ: spec.avg_split_size,
            Counter.MAP_INPUT_BYTES: input_bytes,
            Counter.MAP_INPUT_RECORDS: round(input_records),
            Counter.MAP_OUTPUT_BYTES: round(out_bytes),
            Counter.MAP_OUTPUT_RECORDS: round(out_records),
        }

        if map_only:
            compress = _param_bool(conf, Parameter.COMPRESS_OUT)
            timings[TaskPhase.WRITE] = base.timing(TaskPhase.WRITE) * scale * self._compress_cost(
                base, Statistic.OUT_COMPRESS_RATIO, compress
            )
            written = out_bytes * (base.statistic(Statistic.OUT_COMPRESS_RATIO, 1.0) if compress else 1.0)
            counters[Counter.HDFS_BYTES_WRITTEN] = round(written)
            return self._map_profile(base, spec, counters, timings)

        # Sort buffer: how often does it fill up?
        buffer = _param_int(conf, Parameter.SORT_MB) * MB
        spill_perc = _param_float(conf, Parameter.SPILL_PERC)
        record_perc = _param_float(conf, Parameter.SORT_REC_PERC)
        byte_capacity = buffer * (1.0 - record_perc) * spill_perc
        record_capacity = buffer * record_perc / _RECORD_META_BYTES * spill_perc
        num_spills = max(
            1,
            math.ceil(
                max(_ratio(out_bytes, byte_capacity, 0.0), _ratio(out_records, record_capacity, 0.0))
            ),
        )

        sort_factor = max(_param_int(conf, Parameter.SORT_FACTOR), 2)
        merge_passes = 0 if num_spills == 1 else math.ceil(math.log(num_spills) / math.log(sort_factor))

        combining = bool(conf.get(COMBINE_CLASS_KEY)) and _param_bool(conf, Parameter.COMBINE)
        combine_sel = base.statistic(Statistic.COMBINE_SIZE_SEL, 1.0) if combining else 1.0
        combine_pairs_sel = base.statistic(Statistic.COMBINE_PAIRS_SEL, 1.0) if combining else 1.0
        # The combiner runs again while merging once enough spills pile up
        merge_combines = combining and num_spills >= _param_int(conf, Parameter.NUM_SPILLS_COMBINE)

        compress = _param_bool(conf, Parameter.COMPRESS_MAP_OUT)
        compress_ratio = base.statistic(Statistic.INTERM_COMPRESS_RATIO, 1.0) if compress else 1.0
        compress_cost = self._compress_cost(base, Statistic.INTERM_COMPRESS_RATIO, compress)

        spill_data_time = base.timing(TaskPhase.SPILL) * scale * combine_sel * compress_cost
        if combining:
            spill_data_time += base.timing(TaskPhase.SPILL) * scale * _COMBINE_CPU_FACTOR
        timings[TaskPhase.SPILL] = spill_data_time + num_spills * _SPILL_OVERHEAD_MS
        timings[TaskPhase.MERGE] = merge_passes * spill_data_time

        spilled_bytes = out_bytes * combine_sel * compress_ratio
        spilled_records = out_records * combine_pairs_sel
        materialized = spilled_bytes * (combine_sel if merge_combines else 1.0)
        materialized_records = spilled_records * (combine_pairs_sel if merge_combines else 1.0)

        counters.update(
            {
                Counter.MAP_NUM_SPILLS: num_spills,
                Counter.MAP_NUM_SPILL_MERGES: merge_passes,
                Counter.SPILLED_RECORDS: round(spilled_records * (1 + merge_passes)),
                Counter.FILE_BYTES_WRITTEN: round(materialized + merge_passes * spilled_bytes),
                Counter.FILE_BYTES_READ: round(merge_passes * spilled_bytes),
            }
        )
        if combining:
            counters[Counter.COMBINE_INPUT_RECORDS] = round(out_records)
            counters[Counter.COMBINE_OUTPUT_RECORDS] = round(materialized_records)
        return self._map_profile(base, spec, counters, timings)

    @staticmethod
    def _compress_cost(base: MapProfile | ReduceProfile, ratio: Statistic, compress: bool) -> float:
        """Relative time to write compressed instead of raw bytes."""
        if not compress:
            return 1.0
        return base.statistic(ratio, 1.0) + _COMPRESS_CPU_FACTOR

    @staticmethod
    def _map_profile(
        base: MapProfile,
        spec: InputSpec,
        counters: dict[Counter, float],
        timings: dict[TaskPhase, float],
    ) -> MapProfile:
        return MapProfile(
            task_id=f"{base.task_id or 'map'}_input_{spec.input_index}",
            input_index=spec.input_index,
            num_tasks=spec.num_splits,
            counters={c: round(v) for c, v in counters.items()},
            statistics=dict(base.statistics),
            timings=timings,
        )

    # ------------------------------------------------------------------
    # Reduce side
    # ------------------------------------------------------------------

    def _project_reduce(self, shuffle: ShuffleSpec, conf: Configuration) -> ReduceProfile:
        base = self.base_profile.avg_reduce_profile or ReduceProfile(task_id="reduce")
        num_reducers = num_reduce_tasks(conf)

        base_shuffle = base.counter(Counter.REDUCE_SHUFFLE_BYTES)
        fallback = _ratio(base.num_tasks, num_reducers)
        byte_scale = _ratio(shuffle.size, base_shuffle, fallback)
        record_scale = _ratio(shuffle.records, base.counter(Counter.REDUCE_INPUT_RECORDS), byte_scale)

        # Shuffle buffer: how much of the shuffle spills to disk?
        memory = task_memory(conf)
        shuffle_buffer = memory * _param_float(conf, Parameter.SHUFFLE_IN_BUFF_PERC)
        merge_threshold = shuffle_buffer * _param_float(conf, Parameter.SHUFFLE_MERGE_PERC)
        inmem_merge = max(_param_int(conf, Parameter.INMEM_MERGE), 1)
        if shuffle.size <= merge_threshold and shuffle.num_mappers <= inmem_merge:
            disk_segments = 0
        else:
            disk_segments = max(
                math.ceil(_ratio(shuffle.size, merge_threshold, 1.0)),
                math.ceil(shuffle.num_mappers / inmem_merge),
            )

        sort_factor = max(_param_int(conf, Parameter.SORT_FACTOR), 2)
        merge_passes = (
            0
            if disk_segments <= sort_factor
            else math.ceil(math.log(disk_segments) / math.log(sort_factor))
        )

        # Data kept in the reduce input buffer is never read back from disk
        retained = memory * _param_float(conf, Parameter.RED_IN_BUFF_PERC)
        disk_fraction = 0.0
        if disk_segments > 0:
            disk_fraction = max(0.0, 1.0 - _ratio(retained, shuffle.size, 1.0))

        base_sort = base.timing(TaskPhase.SORT) * byte_scale
        compress_out = _param_bool(conf, Parameter.COMPRESS_OUT)
        timings = {
            TaskPhase.SETUP: base.timing(TaskPhase.SETUP),
            TaskPhase.SHUFFLE: base.timing(TaskPhase.SHUFFLE) * byte_scale,
            TaskPhase.SORT: base_sort * (1 + merge_passes) + base_sort * disk_fraction,
            TaskPhase.REDUCE: base.timing(TaskPhase.REDUCE) * record_scale,
            TaskPhase.WRITE: base.timing(TaskPhase.WRITE)
            * record_scale
            * self._compress_cost(base, Statistic.OUT_COMPRESS_RATIO, compress_out),
            TaskPhase.CLEANUP: base.timing(TaskPhase.CLEANUP),
        }

        out_bytes = base.counter(Counter.REDUCE_OUTPUT_BYTES) * record_scale
        written = out_bytes * (
            base.statistic(Statistic.OUT_COMPRESS_RATIO, 1.0) if compress_out else 1.0
        )
        counters = {
            Counter.REDUCE_SHUFFLE_BYTES: shuffle.size,
            Counter.REDUCE_INPUT_RECORDS: shuffle.records,
            Counter.REDUCE_INPUT_GROUPS: base.counter(Counter.REDUCE_INPUT_GROUPS) * record_scale,
            Counter.REDUCE_OUTPUT_RECORDS: base.counter(Counter.REDUCE_OUTPUT_RECORDS) * record_scale,
            Counter.REDUCE_OUTPUT_BYTES: out_bytes,
            Counter.HDFS_BYTES_WRITTEN: written,
        }
        return ReduceProfile(
            task_id=base.task_id or "reduce",
            num_tasks=num_reducers,
            counters={c: round(v) for c, v in counters.items()},
            statistics=dict(base.statistics),
            timings=timings,
        )
