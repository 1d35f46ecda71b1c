"""Dataset models: what the job's inputs look like under a configuration.

The oracle asks a dataset model for the map input specs (how many splits
of what size per job input) and for the reduce shuffle spec (how much
data each reducer receives). Two models ship:

- ``ProfileDatasetModel``: reuse the inputs observed in a profiled run
- ``FixedInputDatasetModel``: inputs given explicitly, e.g. from an
  input-specs document, to ask about a different data size

Input specs document::

    inputs:
      - input_index: 0
        num_splits: 16
        avg_split_size: 67108864
        compressed: false
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from mrtune.config import Configuration, load_document, num_reduce_tasks, save_document
from mrtune.models import Counter, JobProfile, MapProfile, Statistic


class InputSpec(BaseModel):
    """A group of similarly sized input splits of one job input."""

    model_config = ConfigDict(extra="forbid")

    input_index: int = Field(default=0, ge=0)
    num_splits: int = Field(ge=0)
    avg_split_size: int = Field(ge=0, description="Average split size in bytes")
    compressed: bool = False


class InputSpecsDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    inputs: list[InputSpec] = Field(default_factory=list)


@dataclass(frozen=True)
class ShuffleSpec:
    """Data each reducer receives, assuming no skew."""

    num_mappers: int
    num_reducers: int
    size: int
    records: int


class DatasetModel(ABC):
    """Source of map input and reduce shuffle specs."""

    @abstractmethod
    def map_input_specs(self, conf: Configuration) -> list[InputSpec]:
        """Input splits the job would read under ``conf``."""

    def shuffle_spec(self, conf: Configuration, map_profiles: Sequence[MapProfile]) -> ShuffleSpec:
        """Split the total materialized map output evenly across the reducers.

        Materialized output per map is what it wrote to local disk minus
        what it read back while merging spills.
        """
        size = 0.0
        records = 0.0
        num_mappers = 0
        for profile in map_profiles:
            size += profile.num_tasks * (
                profile.counter(Counter.FILE_BYTES_WRITTEN) - profile.counter(Counter.FILE_BYTES_READ)
            )
            records += profile.num_tasks * (
                profile.counter(Counter.COMBINE_OUTPUT_RECORDS)
                + profile.counter(Counter.MAP_OUTPUT_RECORDS)
                - profile.counter(Counter.COMBINE_INPUT_RECORDS)
            )
            num_mappers += profile.num_tasks

        num_reducers = max(num_reduce_tasks(conf), 1)
        return ShuffleSpec(
            num_mappers=num_mappers,
            num_reducers=num_reducers,
            size=round(size / num_reducers),
            records=round(records / num_reducers),
        )


class ProfileDatasetModel(DatasetModel):
    """Inputs as observed in the profiled run: one spec per map profile."""

    def __init__(self, profile: JobProfile) -> None:
        self.profile = profile

    def map_input_specs(self, conf: Configuration) -> list[InputSpec]:
        specs = []
        for map_profile in self.profile.map_profiles:
            size = map_profile.counter(Counter.HDFS_BYTES_READ) or map_profile.counter(
                Counter.MAP_INPUT_BYTES
            )
            ratio = map_profile.statistic(Statistic.INPUT_COMPRESS_RATIO, 1.0)
            specs.append(
                InputSpec(
                    input_index=map_profile.input_index,
                    num_splits=map_profile.num_tasks,
                    avg_split_size=size,
                    compressed=0.0 < ratio < 1.0,
                )
            )
        return specs


class FixedInputDatasetModel(DatasetModel):
    """Inputs given up front; the configuration does not change them."""

    def __init__(self, specs: Sequence[InputSpec]) -> None:
        self.specs = list(specs)

    def map_input_specs(self, conf: Configuration) -> list[InputSpec]:
        return list(self.specs)


def load_input_specs(path: str | Path) -> list[InputSpec]:
    """Load an input specs document.

    Raises:
        ConfigFileNotFoundError: If file doesn't exist
        ConfigParseError: If YAML parsing fails
        ConfigValidationError: If validation fails
    """
    return load_document(InputSpecsDocument, path, "Input specs").inputs


def save_input_specs(specs: Sequence[InputSpec], path: str | Path) -> None:
    save_document(InputSpecsDocument(inputs=list(specs)), path)
