"""
Composite Block Module.

Every block kind is expressed as the same four parts:

    out = main(x)
    ADD:    out = out + shortcut(x)   (identity shortcut when None)
    CONCAT: out = cat([x, out], dim=1)
    out = act(out)

so heterogeneous kinds share one ``forward`` and one dispatch point.
"""

from __future__ import annotations

import torch
import torch.nn as nn

from .kinds import MergeOp


class CompositeBlock(nn.Module):
    """Main branch, optional shortcut, merge operation and post activation."""

    def __init__(
        self,
        main: nn.Module,
        shortcut: nn.Module | None = None,
        merge: MergeOp | None = None,
        act: nn.Module | None = None,
    ) -> None:
        super().__init__()
        self.main = main
        self.shortcut = shortcut
        self.merge = merge
        self.act = act if act is not None else nn.Identity()

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        out = self.main(x)
        if self.merge is MergeOp.ADD:
            out = out + (x if self.shortcut is None else self.shortcut(x))
        elif self.merge is MergeOp.CONCAT:
            out = torch.cat([x, out], dim=1)
        return self.act(out)

    def extra_repr(self) -> str:
        return f"merge={self.merge.value if self.merge else None}"
