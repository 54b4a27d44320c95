# ==================================================
# =============  MODULE: layout_axes  ==============
# ==================================================
from __future__ import annotations

from enum import IntEnum
from typing import Any, Dict, List, Optional, Sequence, Tuple
import numbers

import numpy as np
import torch

from core.config import LayoutHeuristicConfig

__all__ = [
    "Layout",
    "AXES_ORDER",
    "FORMAT_LAYOUTS",
    "SUPPORTED_TRANSITIONS",
    "coerce_layout",
    "get_layout_axes",
    "permutation_for",
    "permuted_dims",
    "detect_layout",
    "infer_layout",
]


# ====[ Layout tags ]====
class Layout(IntEnum):
    """
    Memory layout tag of a tensor.

    GENERIC marks tensors without permutation semantics (rank other than 4,
    or a 4D tensor whose layout does not matter for conversion).
    """

    UNKNOWN = 0
    NCHW = 1  # ONNX side: batch, channel, height, width
    NHWC = 2  # TFLite side: batch, height, width, channel
    GENERIC = 3

    CHANNEL_FIRST = 1
    CHANNEL_LAST = 2


# ====[ AXIS ORDER ]====
AXES_ORDER: List[str] = ["batch_axis", "channel_axis", "height_axis", "width_axis"]

# ====[ FORMAT LAYOUTS ]====
FORMAT_LAYOUTS: Dict[Layout, Dict[str, Any]] = {
    Layout.NCHW: {
        "name": "NCHW",
        "ndim": 4,
        "batch_axis": 0,
        "channel_axis": 1,
        "height_axis": 2,
        "width_axis": 3,
        "description": "Batch, Channel, Height, Width (channel-first)",
    },
    Layout.NHWC: {
        "name": "NHWC",
        "ndim": 4,
        "batch_axis": 0,
        "channel_axis": 3,
        "height_axis": 1,
        "width_axis": 2,
        "description": "Batch, Height, Width, Channel (channel-last)",
    },
}

# The only transitions with a permutation kernel.
SUPPORTED_TRANSITIONS: Tuple[Tuple[Layout, Layout], ...] = (
    (Layout.NCHW, Layout.NHWC),
    (Layout.NHWC, Layout.NCHW),
)


def coerce_layout(value: Any) -> Layout:
    """
    Return `value` as a Layout (accepts members, integer tags and names).

    Raises
    ------
    ValueError
        If `value` does not name a known layout.
    """
    if isinstance(value, Layout):
        return value
    if isinstance(value, str):
        try:
            return Layout[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown layout '{value}'.") from None
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Integral):
        raise ValueError(f"Unknown layout '{value}'.")
    return Layout(int(value))


def get_layout_axes(layout: Any) -> Dict[str, Any]:
    """
    Return a copy of the axis table for NCHW or NHWC.

    Raises
    ------
    ValueError
        If the layout has no fixed axis positions (UNKNOWN, GENERIC).
    """
    key = coerce_layout(layout)
    if key not in FORMAT_LAYOUTS:
        available = ", ".join(v["name"] for v in FORMAT_LAYOUTS.values())
        raise ValueError(f"Layout '{key.name}' has no axis table. Available: {available}")
    return FORMAT_LAYOUTS[key].copy()


def permutation_for(src: Any, dst: Any) -> Tuple[int, ...]:
    """
    Axis permutation turning a `src`-ordered shape into a `dst`-ordered one.

    ``out_dims[i] == in_dims[perm[i]]``; (0, 2, 3, 1) for NCHW -> NHWC and
    (0, 3, 1, 2) for NHWC -> NCHW.
    """
    src_axes = get_layout_axes(src)
    dst_axes = get_layout_axes(dst)
    perm = [0] * len(AXES_ORDER)
    for role in AXES_ORDER:
        perm[dst_axes[role]] = src_axes[role]
    return tuple(perm)


def permuted_dims(dims: Sequence[int], src: Any, dst: Any) -> List[int]:
    """Reorder a 4D `dims` sequence from `src` layout to `dst` layout."""
    if len(dims) != 4:
        raise ValueError(f"Expected 4 dimensions, got {len(dims)}.")
    return [int(dims[i]) for i in permutation_for(src, dst)]


# ====[ Heuristic detection ]====
def detect_layout(dims: Optional[Sequence[int]], config: Optional[LayoutHeuristicConfig] = None) -> Layout:
    """
    Guess whether a shape is channel-first or channel-last.

    Parameters
    ----------
    dims : sequence of int or None
        Shape to inspect.
    config : LayoutHeuristicConfig, optional
        Thresholds; defaults are 32 (spatial), 128 (channels), (8, 16, 32).

    Returns
    -------
    Layout
        UNKNOWN for None/empty input, GENERIC for rank != 4, otherwise NCHW,
        NHWC, or UNKNOWN when neither pattern matches.

    Notes
    -----
    - NCHW: d1 is a channel axis, d2 and d3 are aligned spatial dims.
    - NHWC: d3 is a channel axis, d1 and d2 are spatial dims (aligned unless
      `align_channel_last_spatial` is False).
    - Ambiguous shapes stay UNKNOWN; callers must then give an explicit layout.
    """
    if dims is None or len(dims) == 0:
        return Layout.UNKNOWN
    if len(dims) != 4:
        return Layout.GENERIC

    cfg = config or LayoutHeuristicConfig()
    _, d1, d2, d3 = (int(d) for d in dims)

    if cfg.is_channel(d1) and cfg.is_spatial(d2) and cfg.is_spatial(d3):
        return Layout.NCHW

    aligned = cfg.align_channel_last_spatial
    if cfg.is_channel(d3) and cfg.is_spatial(d1, aligned) and cfg.is_spatial(d2, aligned):
        return Layout.NHWC

    return Layout.UNKNOWN


def infer_layout(image: Any, config: Optional[LayoutHeuristicConfig] = None) -> Layout:
    """
    Apply `detect_layout` to the shape of a NumPy array or PyTorch tensor.

    Raises
    ------
    TypeError
        If `image` has no `shape` attribute.
    """
    shape = getattr(image, "shape", None)
    if shape is None:
        raise TypeError("Object has no 'shape' attribute for layout inference.")
    if torch.is_tensor(image):
        shape = tuple(image.size())
    return detect_layout(tuple(shape), config)
