"""Parameter descriptors -- the domain and sampling rules of one tunable.

Four closed variants cover every parameter in the catalog:

- ``BooleanDescriptor``: false/true
- ``IntegerDescriptor``: inclusive integer range [min, max]
- ``DoubleDescriptor``: continuous range [min, max] (unbounded cardinality)
- ``ListDescriptor``: enumerated string values

Values are typed (``bool``, ``int``, ``float``, ``str``) while they live in a
space or point; they become strings only when stamped on a Configuration.
"""

from __future__ import annotations

import math
import random
from abc import ABC, abstractmethod
from typing import Any

from .parameter import Effect, Parameter


class DomainError(ValueError):
    """Raised when a descriptor is given an empty or inverted domain."""

    pass


def _round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


class ParameterDescriptor(ABC):
    """Domain plus sampling strategy for a single parameter."""

    def __init__(self, parameter: Parameter, effect: Effect | None = None) -> None:
        self.parameter = parameter
        self.effect = effect if effect is not None else parameter.effect

    @property
    @abstractmethod
    def cardinality(self) -> int | None:
        """Number of distinct values, or None when the domain is continuous."""

    @abstractmethod
    def median_value(self) -> Any: ...

    @abstractmethod
    def equispaced_values(self, n: int) -> list[Any]:
        """Return up to ``n`` deterministic, evenly spread values in domain order."""

    @abstractmethod
    def random_values(self, n: int, rng: random.Random) -> list[Any]:
        """Return up to ``n`` distinct random values in domain order."""

    @abstractmethod
    def random_value(self, rng: random.Random) -> Any: ...

    @abstractmethod
    def localized_value(self, center: Any, scale: float, rng: random.Random) -> Any:
        """Return a random value near ``center``.

        The sampled neighbourhood spans ``scale`` of the domain, i.e. values
        stay within ``scale * (max - min) / 2`` of the center.
        """

    @property
    @abstractmethod
    def domain(self) -> str: ...

    def values(self, n: int, use_random: bool, rng: random.Random | None = None) -> list[Any]:
        if use_random:
            return self.random_values(n, rng or random.Random())
        return self.equispaced_values(n)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.parameter.key}, {self.effect.value}, {self.domain})"


class BooleanDescriptor(ParameterDescriptor):
    """Two-valued domain: false and true."""

    @property
    def cardinality(self) -> int:
        return 2

    @property
    def domain(self) -> str:
        return "{false, true}"

    def median_value(self) -> bool:
        return False

    def equispaced_values(self, n: int) -> list[bool]:
        if n < 2:
            return [False]
        return [False, True]

    def random_values(self, n: int, rng: random.Random) -> list[bool]:
        if n < 2:
            return [self.random_value(rng)]
        return [False, True]

    def random_value(self, rng: random.Random) -> bool:
        return rng.random() < 0.5

    def localized_value(self, center: Any, scale: float, rng: random.Random) -> bool:
        # Half the domain is the smallest neighbourhood that reaches the other value
        center = bool(center)
        if scale <= 0.5 or rng.random() < 0.5 / scale:
            return center
        return not center


class IntegerDescriptor(ParameterDescriptor):
    """Inclusive integer range."""

    def __init__(
        self,
        parameter: Parameter,
        min_value: int,
        max_value: int,
        effect: Effect | None = None,
    ) -> None:
        super().__init__(parameter, effect)
        if max_value < min_value:
            raise DomainError(
                f"{parameter.key}: max value {max_value} is less than min value {min_value}"
            )
        self._min = int(min_value)
        self._max = int(max_value)

    @property
    def min_value(self) -> int:
        return self._min

    @min_value.setter
    def min_value(self, value: int) -> None:
        if value > self._max:
            raise DomainError(f"{self.parameter.key}: min value {value} exceeds max {self._max}")
        self._min = int(value)

    @property
    def max_value(self) -> int:
        return self._max

    @max_value.setter
    def max_value(self, value: int) -> None:
        if value < self._min:
            raise DomainError(f"{self.parameter.key}: max value {value} is below min {self._min}")
        self._max = int(value)

    @property
    def cardinality(self) -> int:
        return self._max - self._min + 1

    @property
    def domain(self) -> str:
        return f"[{self._min}, {self._max}]"

    def median_value(self) -> int:
        return (self._max + self._min) // 2

    def equispaced_values(self, n: int) -> list[int]:
        if self._min == self._max:
            return [self._min]
        n = min(n, self.cardinality)
        if n <= 1:
            return [self.median_value()]
        step = (self._max - self._min) / (n - 1)
        return [_round_half_up(self._min + i * step) for i in range(n)]

    def random_values(self, n: int, rng: random.Random) -> list[int]:
        if n >= self.cardinality:
            return self.equispaced_values(n)
        if n <= 1:
            return [self.random_value(rng)]
        return sorted(rng.sample(range(self._min, self._max + 1), n))

    def random_value(self, rng: random.Random) -> int:
        return rng.randint(self._min, self._max)

    def localized_value(self, center: Any, scale: float, rng: random.Random) -> int:
        center = min(max(int(center), self._min), self._max)
        radius = int(scale * (self._max - self._min) / 2)
        return rng.randint(max(self._min, center - radius), min(self._max, center + radius))


class DoubleDescriptor(ParameterDescriptor):
    """Continuous range; a point range (min == max) holds a single value."""

    def __init__(
        self,
        parameter: Parameter,
        min_value: float,
        max_value: float,
        effect: Effect | None = None,
    ) -> None:
        super().__init__(parameter, effect)
        if max_value < min_value:
            raise DomainError(
                f"{parameter.key}: max value {max_value} is less than min value {min_value}"
            )
        self._min = float(min_value)
        self._max = float(max_value)

    @property
    def min_value(self) -> float:
        return self._min

    @min_value.setter
    def min_value(self, value: float) -> None:
        if value > self._max:
            raise DomainError(f"{self.parameter.key}: min value {value} exceeds max {self._max}")
        self._min = float(value)

    @property
    def max_value(self) -> float:
        return self._max

    @max_value.setter
    def max_value(self, value: float) -> None:
        if value < self._min:
            raise DomainError(f"{self.parameter.key}: max value {value} is below min {self._min}")
        self._max = float(value)

    @property
    def cardinality(self) -> int | None:
        return 1 if self._min == self._max else None

    @property
    def domain(self) -> str:
        return f"[{self._min:g}, {self._max:g}]"

    def median_value(self) -> float:
        return (self._max + self._min) / 2

    def equispaced_values(self, n: int) -> list[float]:
        if self._min == self._max:
            return [self._min]
        if n <= 1:
            return [self.median_value()]
        step = (self._max - self._min) / (n - 1)
        return [self._min + i * step for i in range(n - 1)] + [self._max]

    def random_values(self, n: int, rng: random.Random) -> list[float]:
        if self._min == self._max:
            return [self._min]
        if n <= 1:
            return [self.random_value(rng)]
        values: set[float] = set()
        while len(values) < n:
            values.add(self.random_value(rng))
        return sorted(values)

    def random_value(self, rng: random.Random) -> float:
        return rng.uniform(self._min, self._max)

    def localized_value(self, center: Any, scale: float, rng: random.Random) -> float:
        center = min(max(float(center), self._min), self._max)
        radius = scale * (self._max - self._min) / 2
        return rng.uniform(max(self._min, center - radius), min(self._max, center + radius))


class ListDescriptor(ParameterDescriptor):
    """Enumerated string values, ordered as given."""

    def __init__(
        self,
        parameter: Parameter,
        values: list[str],
        effect: Effect | None = None,
    ) -> None:
        super().__init__(parameter, effect)
        if not values:
            raise DomainError(f"{parameter.key}: a list domain needs at least one value")
        if len(set(values)) != len(values):
            raise DomainError(f"{parameter.key}: list domain values must be distinct")
        self._values = [str(v) for v in values]

    @property
    def cardinality(self) -> int:
        return len(self._values)

    @property
    def domain(self) -> str:
        return "{" + ", ".join(self._values) + "}"

    def median_value(self) -> str:
        return self._values[len(self._values) // 2]

    def equispaced_values(self, n: int) -> list[str]:
        if n >= len(self._values):
            return list(self._values)
        if n <= 1:
            return [self.median_value()]
        step = (len(self._values) - 1) / (n - 1)
        return [self._values[_round_half_up(i * step)] for i in range(n)]

    def random_values(self, n: int, rng: random.Random) -> list[str]:
        if n >= len(self._values):
            return list(self._values)
        if n <= 1:
            return [self.random_value(rng)]
        return [self._values[i] for i in sorted(rng.sample(range(len(self._values)), n))]

    def random_value(self, rng: random.Random) -> str:
        return rng.choice(self._values)

    def localized_value(self, center: Any, scale: float, rng: random.Random) -> str:
        center = str(center)
        last = len(self._values) - 1
        index = self._values.index(center) if center in self._values else last // 2
        radius = int(scale * last / 2)
        return self._values[rng.randint(max(0, index - radius), min(last, index + radius))]
