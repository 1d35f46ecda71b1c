"""mrtune configuration module."""

from .configuration import (
    CLUSTER_HOSTS_PER_RACK_KEY,
    CLUSTER_RACKS_KEY,
    COMBINE_CLASS_KEY,
    DEFAULT_NUM_VALUES_PER_PARAM,
    DEFAULT_RED_SLOWSTART,
    DEFAULT_RED_TASKS,
    DEFAULT_SLOTS_PER_TRACKER,
    EXCLUDE_PARAMS_KEY,
    JAVA_OPTS_KEY,
    MAP_SLOTS_KEY,
    NUM_VALUES_PER_PARAM_KEY,
    RANDOM_SEED_KEY,
    RED_SLOWSTART_KEY,
    RED_TASKS_KEY,
    REDUCE_SLOTS_KEY,
    USE_RANDOM_VALUES_KEY,
    Configuration,
    format_value,
    num_reduce_tasks,
    task_memory,
)
from .loader import (
    ConfigError,
    ConfigFileNotFoundError,
    ConfigParseError,
    ConfigurationDocument,
    ConfigValidationError,
    dump_configuration,
    load_configuration,
    load_document,
    load_yaml,
    save_configuration,
    save_document,
    save_yaml,
    validate_document,
)

__all__ = [
    # Configuration
    "Configuration",
    "ConfigurationDocument",
    "format_value",
    "num_reduce_tasks",
    "task_memory",
    # Keys
    "CLUSTER_HOSTS_PER_RACK_KEY",
    "CLUSTER_RACKS_KEY",
    "COMBINE_CLASS_KEY",
    "EXCLUDE_PARAMS_KEY",
    "JAVA_OPTS_KEY",
    "MAP_SLOTS_KEY",
    "NUM_VALUES_PER_PARAM_KEY",
    "RANDOM_SEED_KEY",
    "RED_SLOWSTART_KEY",
    "RED_TASKS_KEY",
    "REDUCE_SLOTS_KEY",
    "USE_RANDOM_VALUES_KEY",
    # Defaults
    "DEFAULT_NUM_VALUES_PER_PARAM",
    "DEFAULT_RED_SLOWSTART",
    "DEFAULT_RED_TASKS",
    "DEFAULT_SLOTS_PER_TRACKER",
    # Loader functions
    "dump_configuration",
    "load_configuration",
    "load_document",
    "load_yaml",
    "save_configuration",
    "save_document",
    "save_yaml",
    "validate_document",
    # Exceptions
    "ConfigError",
    "ConfigFileNotFoundError",
    "ConfigParseError",
    "ConfigValidationError",
]
