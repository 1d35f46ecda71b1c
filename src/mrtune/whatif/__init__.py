"""What-if analysis: datasets, profile oracles, the engine, and reports."""

from .dataset import (
    DatasetModel,
    FixedInputDatasetModel,
    InputSpec,
    InputSpecsDocument,
    ProfileDatasetModel,
    ShuffleSpec,
    load_input_specs,
    save_input_specs,
)
from .engine import WhatIfEngine
from .oracle import ProfileOracle, ProjectionError, ScalingProfileOracle
from .report import (
    ExecutionSummary,
    TimelineRow,
    WhatIfQuestion,
    execution_summary,
    execution_timeline,
    format_duration,
    mapper_rows,
    reducer_rows,
)

__all__ = [
    # Datasets
    "DatasetModel",
    "FixedInputDatasetModel",
    "InputSpec",
    "InputSpecsDocument",
    "ProfileDatasetModel",
    "ShuffleSpec",
    "load_input_specs",
    "save_input_specs",
    # Oracle
    "ProfileOracle",
    "ProjectionError",
    "ScalingProfileOracle",
    # Engine
    "WhatIfEngine",
    # Reports
    "ExecutionSummary",
    "TimelineRow",
    "WhatIfQuestion",
    "execution_summary",
    "execution_timeline",
    "format_duration",
    "mapper_rows",
    "reducer_rows",
]
