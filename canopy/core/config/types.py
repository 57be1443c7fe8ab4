"""
Semantic type Definitions & Validation Primitives.

Foundational type-system for the configuration engine. Leverages Pydantic's
Annotated types to enforce domain-specific constraints (probability ranges,
channel counts, kernel sizes, layer identifiers) at schema initialization,
before any layer is constructed.

Core Responsibilities:
    * Boundary enforcement: regularisation rates, widths and kernel sizes
    * type aliasing: Centralized registry of domain-specific types
      (DropoutRate, KernelSize, ActivationName) for semantic consistency

Semantic rules that depend on several fields together (output stride vs.
stage count, block kind vs. cardinality) are not expressed here; they are
checked once by the stage assembler and raise ``ConfigurationError``.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import Field

# GENERIC PRIMITIVES
PositiveInt = Annotated[int, Field(gt=0)]
NonNegativeInt = Annotated[int, Field(ge=0)]
PositiveFloat = Annotated[float, Field(gt=0.0)]
Probability = Annotated[float, Field(ge=0.0, le=1.0)]

# MODEL GEOMETRY
Channels = Annotated[int, Field(ge=1, le=16)]
KernelSize = Annotated[int, Field(ge=1, le=11)]
DropoutRate = Annotated[float, Field(ge=0.0, le=0.9)]
ReductionRatio = Annotated[float, Field(gt=0.0, le=1.0)]

# LAYER IDENTIFIERS
BlockKindName = Literal[
    "basic",
    "bottleneck",
    "inverted_residual",
    "fused_inverted_residual",
    "dense_bottleneck",
]
ActivationName = Literal["relu", "relu6", "leaky_relu", "silu", "gelu", "hardswish", "elu", "mish"]
NormName = Literal["batchnorm", "instancenorm", "groupnorm", "layernorm2d", "identity"]
PoolType = Literal["avg", "max", "avgmax", "catavgmax"]
StemType = Literal["default", "deep", "deep_tiered"]
DownsampleType = Literal["conv", "pool"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
