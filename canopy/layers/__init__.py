"""
Layer Primitives Package.

Convolution/normalisation triples, layer registries, channel attention,
stochastic regularisation policies, shortcut projections, the ResNet stem
and the classifier head. Every block and architecture is composed from
these pieces.
"""

from .attention import SqueezeExcite
from .classifier import ClassifierHead
from .conv_norm import conv_norm, dwsep_conv_norm, get_padding
from .downsample import (
    DownsampleStrategy,
    downsample_conv,
    downsample_pool,
    resolve_strategy,
    select_downsample,
)
from .registry import get_act_layer, get_norm_layer
from .regularization import (
    DROP_BLOCK_POLICIES,
    DropBlockPolicy,
    drop_block_policy,
    drop_path_schedule,
    make_drop_block,
    make_drop_path,
)
from .stem import STEM_TYPES, resnet_stem

__all__ = [
    # Primitives
    "conv_norm",
    "dwsep_conv_norm",
    "get_padding",
    # Registries
    "get_act_layer",
    "get_norm_layer",
    # Attention
    "SqueezeExcite",
    # Regularisation
    "DropBlockPolicy",
    "DROP_BLOCK_POLICIES",
    "drop_block_policy",
    "drop_path_schedule",
    "make_drop_block",
    "make_drop_path",
    # Shortcuts
    "DownsampleStrategy",
    "resolve_strategy",
    "downsample_conv",
    "downsample_pool",
    "select_downsample",
    # Stem & Head
    "STEM_TYPES",
    "resnet_stem",
    "ClassifierHead",
]
