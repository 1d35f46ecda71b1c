"""Catalog of tunable map/reduce parameters.

Each ``Parameter`` member's value is its configuration key, so
``Parameter("io.sort.mb") is Parameter.SORT_MB``. The effect tag says which
task kind a parameter influences and drives the map/reduce space split
used by the smart optimizers.
"""

from __future__ import annotations

from enum import Enum


class Effect(str, Enum):
    """Which tasks a parameter affects."""

    MAP = "map"
    REDUCE = "reduce"
    BOTH = "both"
    NONE = "none"


class Parameter(str, Enum):
    """Tunable job parameters, in catalog order."""

    SORT_MB = "io.sort.mb"
    SPILL_PERC = "io.sort.spill.percent"
    SORT_REC_PERC = "io.sort.record.percent"
    NUM_SPILLS_COMBINE = "min.num.spills.for.combine"
    SORT_FACTOR = "io.sort.factor"
    COMPRESS_MAP_OUT = "mapred.compress.map.output"
    COMBINE = "mrtune.use.combiner"
    RED_TASKS = "mapred.reduce.tasks"
    INMEM_MERGE = "mapred.inmem.merge.threshold"
    SHUFFLE_IN_BUFF_PERC = "mapred.job.shuffle.input.buffer.percent"
    SHUFFLE_MERGE_PERC = "mapred.job.shuffle.merge.percent"
    RED_IN_BUFF_PERC = "mapred.job.reduce.input.buffer.percent"
    COMPRESS_OUT = "mapred.output.compress"
    RED_SLOWSTART_MAPS = "mapred.reduce.slowstart.completed.maps"

    @property
    def key(self) -> str:
        return self.value

    @property
    def effect(self) -> Effect:
        return _EFFECTS[self]

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]

    @property
    def default(self) -> str | None:
        """Framework default for the key, or None when it has no fixed default."""
        return _DEFAULTS.get(self)


_EFFECTS: dict[Parameter, Effect] = {
    Parameter.SORT_MB: Effect.MAP,
    Parameter.SPILL_PERC: Effect.MAP,
    Parameter.SORT_REC_PERC: Effect.MAP,
    Parameter.NUM_SPILLS_COMBINE: Effect.MAP,
    Parameter.SORT_FACTOR: Effect.BOTH,
    Parameter.COMPRESS_MAP_OUT: Effect.BOTH,
    Parameter.COMBINE: Effect.BOTH,
    Parameter.RED_TASKS: Effect.REDUCE,
    Parameter.INMEM_MERGE: Effect.REDUCE,
    Parameter.SHUFFLE_IN_BUFF_PERC: Effect.REDUCE,
    Parameter.SHUFFLE_MERGE_PERC: Effect.REDUCE,
    Parameter.RED_IN_BUFF_PERC: Effect.REDUCE,
    Parameter.COMPRESS_OUT: Effect.REDUCE,
    Parameter.RED_SLOWSTART_MAPS: Effect.NONE,
}

_DESCRIPTIONS: dict[Parameter, str] = {
    Parameter.SORT_MB: "Size (MB) of the map-side buffer for storing and sorting key-value pairs",
    Parameter.SPILL_PERC: "Usage threshold of the map-side buffer that triggers a spill to disk",
    Parameter.SORT_REC_PERC: "Fraction of the map-side buffer reserved for record metadata",
    Parameter.NUM_SPILLS_COMBINE: "Minimum number of spills before the combiner runs during merge",
    Parameter.SORT_FACTOR: "Number of sorted streams merged at once during sorting",
    Parameter.COMPRESS_MAP_OUT: "Whether map outputs are compressed before being sent to reducers",
    Parameter.COMBINE: "Whether the job's combiner function is used",
    Parameter.RED_TASKS: "Number of reduce tasks",
    Parameter.INMEM_MERGE: "Number of map outputs that trigger an in-memory merge on the reduce side",
    Parameter.SHUFFLE_IN_BUFF_PERC: "Fraction of reduce task heap used to buffer map outputs during shuffle",
    Parameter.SHUFFLE_MERGE_PERC: "Usage threshold of the shuffle buffer that triggers a merge to disk",
    Parameter.RED_IN_BUFF_PERC: "Fraction of reduce task heap used to retain map outputs during reduce",
    Parameter.COMPRESS_OUT: "Whether the job output is compressed",
    Parameter.RED_SLOWSTART_MAPS: "Fraction of map tasks that must complete before reducers start",
}

_DEFAULTS: dict[Parameter, str] = {
    Parameter.SORT_MB: "100",
    Parameter.SPILL_PERC: "0.8",
    Parameter.SORT_REC_PERC: "0.05",
    Parameter.NUM_SPILLS_COMBINE: "3",
    Parameter.SORT_FACTOR: "10",
    Parameter.COMPRESS_MAP_OUT: "false",
    Parameter.COMBINE: "true",
    Parameter.RED_TASKS: "1",
    Parameter.INMEM_MERGE: "1000",
    Parameter.SHUFFLE_IN_BUFF_PERC: "0.7",
    Parameter.SHUFFLE_MERGE_PERC: "0.66",
    Parameter.RED_IN_BUFF_PERC: "0.0",
    Parameter.COMPRESS_OUT: "false",
    Parameter.RED_SLOWSTART_MAPS: "0.05",
}
