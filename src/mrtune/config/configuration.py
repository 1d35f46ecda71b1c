"""Job configuration -- an ordered string-to-string map of tunables.

Every component reads and writes the same ``Configuration``. Values are
always stored as strings so that keys unknown to mrtune pass through
unchanged; the typed getters convert on the way out.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from typing import Any

from mrtune._constants import DEFAULT_TASK_MEMORY

# Map/reduce keys
RED_TASKS_KEY = "mapred.reduce.tasks"
RED_SLOWSTART_KEY = "mapred.reduce.slowstart.completed.maps"
JAVA_OPTS_KEY = "mapred.child.java.opts"
COMBINE_CLASS_KEY = "mapreduce.combine.class"
MAP_SLOTS_KEY = "mapred.tasktracker.map.tasks.maximum"
REDUCE_SLOTS_KEY = "mapred.tasktracker.reduce.tasks.maximum"

# Optimizer keys
EXCLUDE_PARAMS_KEY = "mrtune.optimizer.exclude.parameters"
USE_RANDOM_VALUES_KEY = "mrtune.optimizer.use.random.values"
NUM_VALUES_PER_PARAM_KEY = "mrtune.optimizer.num.values.per.param"
RANDOM_SEED_KEY = "mrtune.optimizer.random.seed"

# Cluster synthesis keys (used when no cluster document is given)
CLUSTER_RACKS_KEY = "mrtune.cluster.racks"
CLUSTER_HOSTS_PER_RACK_KEY = "mrtune.cluster.hosts.per.rack"

DEFAULT_RED_TASKS = 1
DEFAULT_RED_SLOWSTART = 0.05
DEFAULT_SLOTS_PER_TRACKER = 2
DEFAULT_NUM_VALUES_PER_PARAM = 2

_XMX_RE = re.compile(r"-Xmx(\d+)([kKmMgG]?)")
_UNIT_SHIFT = {"": 0, "k": 10, "m": 20, "g": 30}


def format_value(value: Any) -> str:
    """Serialize a typed tunable value the way configuration files store it."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return repr(value)
    return str(value)


class Configuration:
    """Mutable, insertion-ordered ``str -> str`` map of job tunables.

    Usage::

        conf = Configuration({"mapred.reduce.tasks": "4"})
        conf.set("io.sort.mb", 200)
        conf.get_int("io.sort.mb")   # 200
    """

    def __init__(self, values: dict[str, Any] | None = None) -> None:
        self._values: dict[str, str] = {}
        for key, value in (values or {}).items():
            self.set(key, value)

    def get(self, key: str, default: str | None = None) -> str | None:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = format_value(value)

    def unset(self, key: str) -> None:
        self._values.pop(key, None)

    def get_int(self, key: str, default: int) -> int:
        raw = self._values.get(key)
        if raw is None or raw.strip() == "":
            return default
        return int(float(raw))

    def get_float(self, key: str, default: float) -> float:
        raw = self._values.get(key)
        if raw is None or raw.strip() == "":
            return default
        return float(raw)

    def get_bool(self, key: str, default: bool) -> bool:
        raw = self._values.get(key)
        if raw is None or raw.strip() == "":
            return default
        return raw.strip().lower() == "true"

    def get_strings(self, key: str) -> list[str]:
        """Return a comma-separated value as a list, dropping blanks."""
        raw = self._values.get(key) or ""
        return [item.strip() for item in raw.split(",") if item.strip()]

    def copy(self) -> Configuration:
        clone = Configuration()
        clone._values = dict(self._values)
        return clone

    def to_dict(self) -> dict[str, str]:
        return dict(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Configuration):
            return NotImplemented
        return self._values == other._values

    def __repr__(self) -> str:
        return f"Configuration({self._values!r})"


def task_memory(conf: Configuration) -> int:
    """Per-task heap in bytes, parsed from the ``-Xmx`` child java option.

    Falls back to 200 MiB when the option is missing or carries no -Xmx.
    """
    opts = conf.get(JAVA_OPTS_KEY)
    if not opts:
        return DEFAULT_TASK_MEMORY
    match = _XMX_RE.search(opts)
    if not match:
        return DEFAULT_TASK_MEMORY
    return int(match.group(1)) << _UNIT_SHIFT[match.group(2).lower()]


def num_reduce_tasks(conf: Configuration) -> int:
    return conf.get_int(RED_TASKS_KEY, DEFAULT_RED_TASKS)
