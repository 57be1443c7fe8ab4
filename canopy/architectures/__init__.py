"""
Architectures Package.

Stage and network assembly, the ResNet / ResNeXt / SE-ResNet / DenseNet
builders, and the registry-based model factory.
"""

from .densenet import DENSENET_CONFIGS, build_densenet, dense_block, densenet, transition
from .factory import available_models, get_model
from .network import Network, build_network, resnet
from .resnet import (
    RESNET_CONFIGS,
    build_resnet,
    build_resnext,
    build_seresnet,
    build_seresnext,
)
from .stages import BuildState, StageAssembly, StageInfo, assemble_stages

__all__ = [
    # Assembly
    "BuildState",
    "StageInfo",
    "StageAssembly",
    "assemble_stages",
    "Network",
    "build_network",
    "resnet",
    # ResNet family
    "RESNET_CONFIGS",
    "build_resnet",
    "build_resnext",
    "build_seresnet",
    "build_seresnext",
    # DenseNet
    "DENSENET_CONFIGS",
    "dense_block",
    "transition",
    "densenet",
    "build_densenet",
    # Factory
    "get_model",
    "available_models",
]
