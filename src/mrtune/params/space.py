"""Parameter spaces and the points sampled from them."""

from __future__ import annotations

import math
import random
import sys
from collections.abc import Iterable, Iterator
from typing import Any

from mrtune.config import Configuration, format_value

from .descriptors import ParameterDescriptor
from .parameter import Effect, Parameter

_CATALOG_ORDER = {p: i for i, p in enumerate(Parameter)}


class ParameterSpacePoint:
    """One assignment of values to parameters.

    Points are mutable and hash by content, so they can be deduplicated in
    sets and used as dictionary keys once fully built.
    """

    def __init__(self, values: dict[Parameter, Any] | None = None) -> None:
        self._values: dict[Parameter, Any] = dict(values or {})

    def get(self, parameter: Parameter, default: Any = None) -> Any:
        return self._values.get(parameter, default)

    def set(self, parameter: Parameter, value: Any) -> None:
        self._values[parameter] = value

    @property
    def parameters(self) -> list[Parameter]:
        return sorted(self._values, key=_CATALOG_ORDER.__getitem__)

    def copy(self) -> ParameterSpacePoint:
        return ParameterSpacePoint(self._values)

    def merge(self, other: ParameterSpacePoint) -> None:
        """Add every value of ``other``; values already present are overwritten."""
        self._values.update(other._values)

    def populate_configuration(self, conf: Configuration) -> None:
        for parameter in self.parameters:
            conf.set(parameter.key, self._values[parameter])

    def to_dict(self) -> dict[str, str]:
        return {p.key: format_value(self._values[p]) for p in self.parameters}

    def __contains__(self, parameter: object) -> bool:
        return parameter in self._values

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self.parameters)

    def __len__(self) -> int:
        return len(self._values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParameterSpacePoint):
            return NotImplemented
        return self._values == other._values

    def __hash__(self) -> int:
        return hash(frozenset(self._values.items()))

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v}" for k, v in self.to_dict().items())
        return f"ParameterSpacePoint({inner})"


class ParameterSpace:
    """A set of descriptors, at most one per parameter, in catalog order.

    Usage::

        space = ParameterSpace()
        space.add(IntegerDescriptor(Parameter.SORT_FACTOR, 2, 100))
        space.add(BooleanDescriptor(Parameter.COMPRESS_MAP_OUT))
        points = space.grid(3)   # 3 x 2 = 6 points
    """

    def __init__(self, descriptors: Iterable[ParameterDescriptor] = ()) -> None:
        self._descriptors: dict[Parameter, ParameterDescriptor] = {}
        for descriptor in descriptors:
            self.add(descriptor)

    # ------------------------------------------------------------------
    # Descriptor management
    # ------------------------------------------------------------------

    def add(self, descriptor: ParameterDescriptor) -> None:
        """Add a descriptor, replacing any existing one for the same parameter."""
        self._descriptors[descriptor.parameter] = descriptor
        self._descriptors = dict(
            sorted(self._descriptors.items(), key=lambda kv: _CATALOG_ORDER[kv[0]])
        )

    def get(self, parameter: Parameter) -> ParameterDescriptor:
        return self._descriptors[parameter]

    def remove(self, parameter: Parameter) -> None:
        self._descriptors.pop(parameter, None)

    @property
    def parameters(self) -> list[Parameter]:
        return list(self._descriptors)

    @property
    def num_dimensions(self) -> int:
        return len(self._descriptors)

    def filter(self, effect: Effect) -> ParameterSpace:
        """Return a new space with the descriptors carrying ``effect``."""
        return ParameterSpace(d for d in self if d.effect == effect)

    def __contains__(self, parameter: object) -> bool:
        return parameter in self._descriptors

    def __iter__(self) -> Iterator[ParameterDescriptor]:
        return iter(list(self._descriptors.values()))

    def __len__(self) -> int:
        return len(self._descriptors)

    def __repr__(self) -> str:
        return f"ParameterSpace({list(self._descriptors.values())!r})"

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    @property
    def num_unique_points(self) -> int | None:
        """Product of the descriptor cardinalities.

        None means unbounded: some axis is continuous or the product
        overflows ``sys.maxsize``. The empty space holds one (empty) point.
        """
        total = 1
        for descriptor in self:
            cardinality = descriptor.cardinality
            if cardinality is None:
                return None
            total *= cardinality
            if total > sys.maxsize:
                return None
        return total

    # ------------------------------------------------------------------
    # Sampling
    # ------------------------------------------------------------------

    def empty_point(self) -> ParameterSpacePoint:
        return ParameterSpacePoint()

    def random_point(self, rng: random.Random | None = None) -> ParameterSpacePoint:
        rng = rng or random.Random()
        return ParameterSpacePoint({d.parameter: d.random_value(rng) for d in self})

    def localized_random_point(
        self,
        center: ParameterSpacePoint,
        scale: float,
        rng: random.Random | None = None,
    ) -> ParameterSpacePoint:
        """Random point in the neighbourhood of ``center``.

        Each axis is sampled at ``scale ** (1 / d)`` so the neighbourhood's
        volume is ``scale`` of the space's. Axes missing from ``center`` are
        sampled from their median.
        """
        rng = rng or random.Random()
        if not self._descriptors:
            return ParameterSpacePoint()
        axis_scale = math.pow(scale, 1.0 / self.num_dimensions)
        point = ParameterSpacePoint()
        for descriptor in self:
            origin = center.get(descriptor.parameter, descriptor.median_value())
            point.set(
                descriptor.parameter,
                descriptor.localized_value(origin, axis_scale, rng),
            )
        return point

    def grid(
        self,
        n: int,
        use_random: bool = False,
        rng: random.Random | None = None,
    ) -> list[ParameterSpacePoint]:
        """Cartesian product of up to ``n`` values per axis.

        The first axis seeds one point per value; each later axis assigns
        its first value to the existing points and appends a copy of them
        for each further value. The result has exactly
        ``prod(min(n, cardinality_i))`` points; an empty space yields the
        single empty point.
        """
        points: list[ParameterSpacePoint] = []
        seeded = False
        for descriptor in self:
            values = descriptor.values(n, use_random, rng)
            if not seeded:
                points = [ParameterSpacePoint({descriptor.parameter: v}) for v in values]
                seeded = True
                continue

            base = points
            for point in base:
                point.set(descriptor.parameter, values[0])
            extra: list[ParameterSpacePoint] = []
            for value in values[1:]:
                for point in base:
                    clone = point.copy()
                    clone.set(descriptor.parameter, value)
                    extra.append(clone)
            points = base + extra

        if not seeded:
            return [ParameterSpacePoint()]
        return points
