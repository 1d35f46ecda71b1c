"""Parameter-space model: catalog, descriptors, spaces, points, builders."""

from .builder import (
    adjust_space,
    build_full_space,
    build_map_space,
    build_next_job_space,
    build_reduce_space,
    exclude_map_side,
    exclude_parameters,
    exclude_reduce_side,
    excluded_parameters,
)
from .descriptors import (
    BooleanDescriptor,
    DomainError,
    DoubleDescriptor,
    IntegerDescriptor,
    ListDescriptor,
    ParameterDescriptor,
)
from .parameter import Effect, Parameter
from .space import ParameterSpace, ParameterSpacePoint

__all__ = [
    # Catalog
    "Effect",
    "Parameter",
    # Descriptors
    "BooleanDescriptor",
    "DomainError",
    "DoubleDescriptor",
    "IntegerDescriptor",
    "ListDescriptor",
    "ParameterDescriptor",
    # Space
    "ParameterSpace",
    "ParameterSpacePoint",
    # Builders
    "adjust_space",
    "build_full_space",
    "build_map_space",
    "build_next_job_space",
    "build_reduce_space",
    "exclude_map_side",
    "exclude_parameters",
    "exclude_reduce_side",
    "excluded_parameters",
]
