"""
Convolution + Normalization Primitives.

``conv_norm`` is the single place where a convolution, its normalisation
layer and its activation are ordered. Every block, stem and transition in
the package is written in terms of it.

Orderings:
    - default:  conv → norm → act
    - preact:   conv → act → norm
    - revnorm:  norm → act → conv   (pre-activation, DenseNet style; the
      norm layer sees the *input* channels)
    - use_norm=False: conv → act

``dwsep_conv_norm`` chains a depthwise and a pointwise ``conv_norm``.
"""

from __future__ import annotations

from typing import Callable

import torch.nn as nn

from ..exceptions import ConfigurationError


def get_padding(kernel_size: int, stride: int = 1, dilation: int = 1) -> int:
    """
    Symmetric padding for a convolution.

    Keeps the spatial size for stride 1 and halves it (rounding up) for
    stride 2 with odd kernels.

    Args:
        kernel_size: Convolution kernel size.
        stride: Convolution stride.
        dilation: Convolution dilation.

    Returns:
        ``((stride - 1) + dilation * (kernel_size - 1)) // 2``
    """
    return ((stride - 1) + dilation * (kernel_size - 1)) // 2


def conv_norm(
    kernel_size: int,
    in_channels: int,
    out_channels: int,
    act_layer: Callable[[], nn.Module] | None = nn.ReLU,
    *,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    revnorm: bool = False,
    preact: bool = False,
    use_norm: bool = True,
    stride: int = 1,
    padding: int | str | None = None,
    dilation: int = 1,
    groups: int = 1,
    bias: bool | None = None,
) -> list[nn.Module]:
    """
    Build a convolution / normalisation / activation triple.

    Args:
        kernel_size: Convolution kernel size.
        in_channels: Input feature maps.
        out_channels: Output feature maps.
        act_layer: Zero-argument activation constructor, or None for no activation.
        norm_layer: Normalisation constructor taking the channel count.
        revnorm: Place normalisation (and activation) before the convolution.
        preact: Apply the activation between the convolution and the norm.
        use_norm: Set to False to drop the normalisation layer.
        stride: Convolution stride.
        padding: Explicit padding, 'same', or None for ``get_padding``.
        dilation: Convolution dilation.
        groups: Convolution groups.
        bias: Convolution bias; defaults to True only when no norm follows.

    Returns:
        Ordered list of layers, ready to be unpacked into ``nn.Sequential``.

    Raises:
        ConfigurationError: If ``preact`` and ``revnorm`` are combined, or if
            either is requested with ``use_norm=False``.
    """
    if not use_norm and (preact or revnorm):
        raise ConfigurationError("`preact` and `revnorm` are only supported with `use_norm=True`")
    if preact and revnorm:
        raise ConfigurationError("`preact` and `revnorm` cannot be set at the same time")

    if padding is None:
        padding = get_padding(kernel_size, stride, dilation)
    if bias is None:
        bias = not use_norm

    conv = nn.Conv2d(
        in_channels,
        out_channels,
        kernel_size,
        stride=stride,
        padding=padding,
        dilation=dilation,
        groups=groups,
        bias=bias,
    )
    act = [act_layer()] if act_layer is not None else []

    if not use_norm:
        return [conv, *act]
    if revnorm:
        return [norm_layer(in_channels), *act, conv]
    if preact:
        return [conv, *act, norm_layer(out_channels)]
    return [conv, norm_layer(out_channels), *act]


def dwsep_conv_norm(
    kernel_size: int,
    in_channels: int,
    out_channels: int,
    act_layer: Callable[[], nn.Module] | None = nn.ReLU,
    *,
    norm_layer: Callable[[int], nn.Module] = nn.BatchNorm2d,
    revnorm: bool = False,
    use_norm: tuple[bool, bool] = (True, True),
    stride: int = 1,
    padding: int | str | None = None,
    dilation: int = 1,
) -> list[nn.Module]:
    """
    Depthwise separable convolution (MobileNet-v1 style).

    A ``kernel_size`` depthwise ``conv_norm`` keeping ``in_channels``, followed
    by a 1x1 pointwise ``conv_norm`` to ``out_channels``. ``stride``,
    ``padding`` and ``dilation`` apply to the depthwise convolution only;
    ``use_norm`` toggles normalisation for each of the two convolutions.
    """
    depthwise = conv_norm(
        kernel_size,
        in_channels,
        in_channels,
        act_layer,
        norm_layer=norm_layer,
        revnorm=revnorm,
        use_norm=use_norm[0],
        stride=stride,
        padding=padding,
        dilation=dilation,
        groups=in_channels,
    )
    pointwise = conv_norm(
        1,
        in_channels,
        out_channels,
        act_layer,
        norm_layer=norm_layer,
        revnorm=revnorm,
        use_norm=use_norm[1],
    )
    return depthwise + pointwise
