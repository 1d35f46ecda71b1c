"""Recursive Random Search (RRS).

A black-box minimizer that alternates between two activities:

- **exploration**: uniform random samples over the whole space; a sample
  better than the running threshold (the mean of the last ``n`` samples)
  marks a promising region
- **exploitation**: random samples in a shrinking neighbourhood of the
  promising point; the neighbourhood re-centers on every improvement and
  shrinks by ``c`` after ``l`` consecutive failures, until its size drops
  to ``s_t``

``n`` is the number of samples that land in the best ``r`` fraction of the
space with probability ``p``; ``l`` the number of failures after which the
neighbourhood holds an improvement with probability below ``1 - q``:

    n = round(ln(1 - p) / ln(1 - r))
    l = round(ln(1 - q) / ln(1 - v))

The search stops after ``ceil(150 * d^1.2)`` evaluations or once
``ceil(80 * d^1.2)`` evaluations pass without improving the optimum.

Reference: T. Ye and S. Kalyanaraman, "A Recursive Random Search
Algorithm for Large-Scale Network Parameter Configuration", SIGMETRICS 2003.
"""

from __future__ import annotations

import logging
import math
import random
import statistics
from collections.abc import Sequence
from typing import Protocol, TypeVar

from mrtune.config import Configuration

logger = logging.getLogger(__name__)

# Configuration keys
EXPLORE_CONF_PROB_KEY = "mrtune.optimizer.explore.confidence.prob"
EXPLORE_PERCENTILE_KEY = "mrtune.optimizer.explore.percentile"
EXPLOIT_CONF_PROB_KEY = "mrtune.optimizer.exploit.confidence.prob"
EXPLOIT_EXPECTED_VALUE_KEY = "mrtune.optimizer.exploit.expected.value"
EXPLOIT_REDUCTION_RATIO_KEY = "mrtune.optimizer.exploit.reduction.ratio"
EXPLOIT_TERMINATION_SIZE_KEY = "mrtune.optimizer.exploit.termination.size"

DEFAULT_EXPLORE_CONF_PROB = 0.99
DEFAULT_EXPLORE_PERCENTILE = 0.1
DEFAULT_EXPLOIT_CONF_PROB = 0.99
DEFAULT_EXPLOIT_EXPECTED_VALUE = 0.8
DEFAULT_EXPLOIT_REDUCTION_RATIO = 0.5
DEFAULT_EXPLOIT_TERMINATION_SIZE = 0.001

P = TypeVar("P")


class SearchSpace(Protocol[P]):
    """What RRS needs from a space of points ``P``."""

    @property
    def num_dimensions(self) -> int: ...

    @property
    def num_unique_points(self) -> int | None: ...

    def empty_point(self) -> P: ...

    def random_point(self, rng: random.Random | None = None) -> P: ...

    def localized_random_point(self, center: P, scale: float, rng: random.Random | None = None) -> P: ...

    def grid(self, n: int, use_random: bool = False, rng: random.Random | None = None) -> list[P]: ...


class CostEngine(Protocol[P]):
    """Prices one point; lower is better."""

    def __call__(self, point: P) -> float: ...


class RecursiveRandomSearch:
    """RRS with tunable exploration/exploitation parameters.

    Usage::

        rrs = RecursiveRandomSearch.from_configuration(conf, rng=random.Random(7))
        best = rrs.find_best_point(space, lambda point: cost(point))
    """

    def __init__(
        self,
        explore_conf_prob: float = DEFAULT_EXPLORE_CONF_PROB,
        explore_percentile: float = DEFAULT_EXPLORE_PERCENTILE,
        exploit_conf_prob: float = DEFAULT_EXPLOIT_CONF_PROB,
        exploit_expected_value: float = DEFAULT_EXPLOIT_EXPECTED_VALUE,
        reduction_ratio: float = DEFAULT_EXPLOIT_REDUCTION_RATIO,
        termination_size: float = DEFAULT_EXPLOIT_TERMINATION_SIZE,
        rng: random.Random | None = None,
    ) -> None:
        for name, value in (
            ("explore_conf_prob", explore_conf_prob),
            ("explore_percentile", explore_percentile),
            ("exploit_conf_prob", exploit_conf_prob),
            ("exploit_expected_value", exploit_expected_value),
            ("reduction_ratio", reduction_ratio),
        ):
            if not 0.0 < value < 1.0:
                raise ValueError(f"{name} must be in (0, 1), got {value}")
        if termination_size <= 0.0:
            raise ValueError(f"termination_size must be positive, got {termination_size}")

        self.r = explore_percentile
        self.c = reduction_ratio
        self.s_t = termination_size
        self.n = max(1, round(math.log(1 - explore_conf_prob) / math.log(1 - explore_percentile)))
        self.l = max(1, round(math.log(1 - exploit_conf_prob) / math.log(1 - exploit_expected_value)))
        self.rng = rng or random.Random()
        self.evaluations = 0

    @classmethod
    def from_configuration(
        cls,
        conf: Configuration,
        rng: random.Random | None = None,
    ) -> RecursiveRandomSearch:
        return cls(
            explore_conf_prob=conf.get_float(EXPLORE_CONF_PROB_KEY, DEFAULT_EXPLORE_CONF_PROB),
            explore_percentile=conf.get_float(EXPLORE_PERCENTILE_KEY, DEFAULT_EXPLORE_PERCENTILE),
            exploit_conf_prob=conf.get_float(EXPLOIT_CONF_PROB_KEY, DEFAULT_EXPLOIT_CONF_PROB),
            exploit_expected_value=conf.get_float(
                EXPLOIT_EXPECTED_VALUE_KEY, DEFAULT_EXPLOIT_EXPECTED_VALUE
            ),
            reduction_ratio=conf.get_float(
                EXPLOIT_REDUCTION_RATIO_KEY, DEFAULT_EXPLOIT_REDUCTION_RATIO
            ),
            termination_size=conf.get_float(
                EXPLOIT_TERMINATION_SIZE_KEY, DEFAULT_EXPLOIT_TERMINATION_SIZE
            ),
            rng=rng,
        )

    def find_best_point(self, space: SearchSpace[P], cost: CostEngine[P]) -> P:
        """Return the cheapest point found in ``space``."""
        self.evaluations = 0
        if space.num_dimensions == 0:
            return space.empty_point()

        unique = space.num_unique_points
        if unique is not None and unique < self.n:
            logger.debug("Space has %d points, enumerating it", unique)
            return self._best_of(space.grid(self.n), cost)

        def evaluate(point: P) -> float:
            self.evaluations += 1
            return cost(point)

        # Initial exploration
        samples = [space.random_point(self.rng) for _ in range(self.n)]
        costs = [evaluate(x) for x in samples]
        best_index = min(range(self.n), key=costs.__getitem__)
        x_0, f_x_0 = samples[best_index], costs[best_index]
        threshold = f_x_0

        x_opt, f_x_opt = x_0, f_x_0
        last_improvement = self.evaluations

        d = space.num_dimensions
        max_evaluations = math.ceil(150 * d**1.2)
        max_stale = math.ceil(80 * d**1.2)

        i = 0
        exploit = True
        while (
            self.evaluations < max_evaluations
            and self.evaluations - last_improvement < max_stale
        ):
            if exploit:
                x_l, f_x_l = x_0, f_x_0
                radius = self.r
                failures = 0
                while radius > self.s_t and self.evaluations < max_evaluations:
                    x_prime = space.localized_random_point(x_l, radius, self.rng)
                    f_x_prime = evaluate(x_prime)
                    if f_x_prime < f_x_l:
                        # Re-center on the improvement
                        x_l, f_x_l = x_prime, f_x_prime
                        failures = 0
                    else:
                        failures += 1
                    if failures == self.l:
                        radius *= self.c
                        failures = 0

                exploit = False
                if f_x_l < f_x_opt:
                    x_opt, f_x_opt = x_l, f_x_l
                    last_improvement = self.evaluations
                    logger.debug("RRS optimum %.0f after %d evaluations", f_x_opt, self.evaluations)

            x_0 = space.random_point(self.rng)
            f_x_0 = evaluate(x_0)
            samples[i], costs[i] = x_0, f_x_0
            if f_x_0 < f_x_opt:
                x_opt, f_x_opt = x_0, f_x_0
                last_improvement = self.evaluations
            if f_x_0 < threshold:
                exploit = True

            i += 1
            if i == self.n:
                threshold = statistics.fmean(costs)
                i = 0

        logger.debug("RRS finished after %d evaluations: %.0f", self.evaluations, f_x_opt)
        return x_opt

    def _best_of(self, points: Sequence[P], cost: CostEngine[P]) -> P:
        best = points[0]
        best_cost = math.inf
        for point in points:
            self.evaluations += 1
            value = cost(point)
            if value < best_cost:
                best, best_cost = point, value
        return best
