"""
Shared pytest configuration.

Registers the ``unit`` / ``integration`` markers and provides small
tensor fixtures reused across the layer, block and architecture suites.
"""

from __future__ import annotations

import pytest
import torch


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast, isolated tests")
    config.addinivalue_line("markers", "integration: tests that build complete networks")


@pytest.fixture
def image_batch() -> torch.Tensor:
    """Two RGB images at 64x64."""
    torch.manual_seed(0)
    return torch.randn(2, 3, 64, 64)


@pytest.fixture
def feature_map() -> torch.Tensor:
    """Two 64-channel feature maps at 16x16 (a stem output for 64x64 input)."""
    torch.manual_seed(0)
    return torch.randn(2, 64, 16, 16)
