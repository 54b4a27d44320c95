# ==================================================
# ================  MODULE: config  ================
# ==================================================
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union

import logging

import numpy as np

from core.errors import ERROR_MSG_SIZE

__all__ = [
    "SIZE_MAX",
    "INT32_MAX",
    "MAX_RANK",
    "LayoutHeuristicConfig",
    "ConverterConfig",
]

# ====[ Platform limits ]====
# Largest value of an address-space-sized unsigned integer.
SIZE_MAX: int = int(np.iinfo(np.uintp).max)
INT32_MAX: int = int(np.iinfo(np.int32).max)
MAX_RANK: int = 8


class _UpdatableConfig:
    """Shared `update_config` / `summary` helpers for the config dataclasses."""

    def update_config(self, **kwargs: Any):
        """Dynamically update configuration attributes (in-place)."""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
            else:
                raise AttributeError(f"[{type(self).__name__}] Unknown config key: '{key}'")
        return self

    def summary(self, printout: bool = True) -> Dict[str, Any]:
        """Return or print a flat summary of the configuration."""
        info = {k: v for k, v in vars(self).items() if not isinstance(v, _UpdatableConfig)}
        if printout:
            print(f"=== [ {type(self).__name__} Summary ] ===")
            for k in info:
                print(f"{k:<28}: {info[k]}")
        return info


# ==================================================
# ==========  CLASS: LayoutHeuristicConfig  ========
# ==================================================
@dataclass
class LayoutHeuristicConfig(_UpdatableConfig):
    """
    Thresholds used by `detect_layout` to guess NCHW vs NHWC from a 4D shape.

    The values are unvalidated conventions, kept here so callers relying on
    exact guessing behavior can pin them.

    Attributes
    ----------
    min_spatial : int, default 32
        Smallest height/width considered an image plane.
    max_channels : int, default 128
        Largest size accepted for the channel axis.
    spatial_divisors : tuple of int, default (8, 16, 32)
        A spatial dimension must be divisible by at least one of these.
    align_channel_last_spatial : bool, default True
        Apply the divisibility test to the channel-last candidate as well.
        When False, channel-last only needs both spatial dims >= `min_spatial`.
    """

    min_spatial: int = 32
    max_channels: int = 128
    spatial_divisors: Tuple[int, ...] = (8, 16, 32)
    align_channel_last_spatial: bool = True

    def is_spatial(self, dim: int, aligned: bool = True) -> bool:
        """Return True if `dim` looks like a height or width."""
        if dim < self.min_spatial:
            return False
        if not aligned:
            return True
        return any(dim % d == 0 for d in self.spatial_divisors)

    def is_channel(self, dim: int) -> bool:
        """Return True if `dim` is small enough to be a channel axis."""
        return dim <= self.max_channels


# ==================================================
# ============  CLASS: ConverterConfig  ============
# ==================================================
@dataclass
class ConverterConfig(_UpdatableConfig):
    """
    Limits and ambient settings for `LayoutConverter`.

    Attributes
    ----------
    max_rank : int, default 8
        Largest accepted number of dimensions.
    dim_max : int, default int32 max
        Largest accepted single dimension (shape metadata is stored as int32).
    size_max : int, default platform uintp max
        Ceiling for element counts and byte totals; products above it are
        treated as overflow.
    error_msg_size : int, default 256
        Size of the diagnostic message buffer, terminator included.
    log_level : int, default logging.INFO
        Level of the converter logger.
    log_dir : str | Path, optional
        Folder for rotating log files; console only when None.
    logger_name : str, default "tensor_converter"
        Name of the converter logger.
    time_calls : bool, default False
        Log the duration of every `convert` call at DEBUG level.
    heuristic : LayoutHeuristicConfig
        Thresholds of the layout heuristic.
    """

    max_rank: int = MAX_RANK
    dim_max: int = INT32_MAX
    size_max: int = SIZE_MAX
    error_msg_size: int = ERROR_MSG_SIZE
    log_level: int = logging.INFO
    log_dir: Optional[Union[str, Path]] = None
    logger_name: str = "tensor_converter"
    time_calls: bool = False
    heuristic: LayoutHeuristicConfig = field(default_factory=LayoutHeuristicConfig)
