"""What-if engine: oracle projection followed by scheduler simulation."""

from __future__ import annotations

import logging

from mrtune.config import Configuration
from mrtune.models import JobProfile, SyntheticJobExecution
from mrtune.scheduler import FifoScheduler

from .dataset import DatasetModel
from .oracle import ProfileOracle

logger = logging.getLogger(__name__)


class WhatIfEngine:
    """Answer "how long would the job take under this configuration?".

    Every call projects a fresh profile; nothing is cached. The scheduler's
    slot state is left as the simulation leaves it, so callers that ask
    several questions reset it in between.
    """

    def __init__(
        self,
        oracle: ProfileOracle,
        dataset: DatasetModel,
        scheduler: FifoScheduler,
    ) -> None:
        self.oracle = oracle
        self.dataset = dataset
        self.scheduler = scheduler

    def set_ignore_reducers(self, ignore: bool) -> None:
        """Leave reducers out of both the projection and the simulation."""
        self.oracle.set_ignore_reducers(ignore)
        self.scheduler.ignore_reducers = ignore

    def project(self, conf: Configuration) -> JobProfile:
        return self.oracle.project(conf, self.dataset)

    def predict_duration(self, conf: Configuration, submission_time: float = 0.0) -> float:
        """Predicted running time in ms (fast simulation)."""
        profile = self.project(conf)
        duration = self.scheduler.schedule_duration(profile, conf, submission_time)
        logger.debug("Predicted %.0f ms for %s", duration, profile.job_id)
        return duration

    def predict_execution(
        self,
        conf: Configuration,
        submission_time: float = 0.0,
    ) -> SyntheticJobExecution:
        """Predicted task-level execution (detailed simulation)."""
        profile = self.project(conf)
        return self.scheduler.schedule(profile, conf, submission_time)
