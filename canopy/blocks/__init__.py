"""
Blocks Package.

Block kinds, their expansion factors, and the composite block builder that
turns a ``BlockSpec`` into a module.
"""

from .builder import build_block, validate_block_spec
from .composite import CompositeBlock
from .kinds import (
    RESIDUAL_KINDS,
    BlockKind,
    BlockSpec,
    MergeOp,
    expansion_factor,
    resolve_kind,
)

__all__ = [
    "BlockKind",
    "BlockSpec",
    "MergeOp",
    "RESIDUAL_KINDS",
    "CompositeBlock",
    "build_block",
    "validate_block_spec",
    "expansion_factor",
    "resolve_kind",
]
