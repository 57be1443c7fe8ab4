"""
Project-wide Architecture Constants.

Single source of truth for the values shared by the stem, the stage
assembler and the classifier head.

Module Attributes:
    LOGGER_NAME: Global logger identity used by all modules for log synchronization.
    STEM_STRIDE: Spatial reduction applied by every stem before the first stage.
    SUPPORTED_OUTPUT_STRIDES: Network output strides the stage assembler accepts.
    RESNET_STAGE_CHANNELS: Nominal per-stage widths of the ResNet family.
    MAX_STAGES: Length of the per-stage drop-block policy table.
"""

from typing import Final, FrozenSet, Tuple

# Global logger identity used by all modules to ensure log synchronization
LOGGER_NAME: Final[str] = "Canopy"

# Every stem downsamples by 4x (stride-2 conv followed by a stride-2 pool)
STEM_STRIDE: Final[int] = 4

SUPPORTED_OUTPUT_STRIDES: Final[FrozenSet[int]] = frozenset({8, 16, 32})

RESNET_STAGE_CHANNELS: Final[Tuple[int, ...]] = (64, 128, 256, 512)

MAX_STAGES: Final[int] = 4
