"""
Regularization Configuration Schema.

Rates for the three stochastic regularisers wired in by the network
assembler: classifier dropout, per-block drop-path (stochastic depth) and
per-stage drop-block. A rate of 0 disables the corresponding layer.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from .types import DropoutRate, Probability


class DropRatesConfig(BaseModel):
    """
    Stochastic regularisation rates.

    Attributes:
        dropout_rate: Dropout probability in the classifier head.
        drop_path_rate: Maximum stochastic-depth rate; blocks receive a
            linearly increasing share from 0 to this value.
        drop_block_rate: Drop-block probability for stages 3 and 4.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dropout_rate: DropoutRate = Field(
        default=0.0, description="Dropout probability before the final projection."
    )

    drop_path_rate: Probability = Field(
        default=0.0, description="Stochastic depth rate reached by the last block."
    )

    drop_block_rate: Probability = Field(
        default=0.0, description="DropBlock probability applied in the last two stages."
    )
