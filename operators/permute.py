# ==================================================
# ===============  MODULE: permute  ================
# ==================================================
from __future__ import annotations

from typing import Any, Iterator, Optional, Tuple
import numbers

import numpy as np

from core.config import SIZE_MAX
from core.shape import checked_product
from utils.buffers import as_byte_view

__all__ = [
    "nchw_to_nhwc",
    "nhwc_to_nchw",
    "channel_first_to_channel_last",
    "channel_last_to_channel_first",
    "copy_tensor_data",
]

IndexPairs = Iterator[Tuple[int, int]]


# ====[ Shared checks ]====
def _is_positive_int(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, (bool, np.bool_)) and value > 0


def _checked_total(dims: Tuple[Any, ...], element_width: Any, size_max: int) -> Optional[int]:
    """Element count of `dims`, or None if any factor is invalid or a product overflows."""
    if not all(_is_positive_int(d) for d in dims) or not _is_positive_int(element_width):
        return None
    total = checked_product(dims, size_max)
    if total is None or checked_product((total, element_width), size_max) is None:
        return None
    return total


def _ints(*values: Any) -> Tuple[int, ...]:
    return tuple(int(v) for v in values)


def _open_views(src: Any, dst: Any, nbytes: int) -> Optional[Tuple[memoryview, memoryview]]:
    """Byte views over `src`/`dst`, or None if either is missing or shorter than `nbytes`."""
    src_view = as_byte_view(src)
    dst_view = as_byte_view(dst, writable=True)
    if src_view is None or dst_view is None:
        return None
    if len(src_view) < nbytes or len(dst_view) < nbytes:
        return None
    return src_view, dst_view


def _remap(
    src_view: memoryview,
    dst_view: memoryview,
    pairs: IndexPairs,
    total: int,
    element_width: int,
) -> bool:
    """Copy one element per (src_idx, dst_idx) pair; abort on the first out-of-range index."""
    for src_idx, dst_idx in pairs:
        if src_idx >= total or dst_idx >= total:
            return False
        s = src_idx * element_width
        d = dst_idx * element_width
        dst_view[d : d + element_width] = src_view[s : s + element_width]
    return True


# ====[ Index generators ]====
def _nchw_to_nhwc_pairs(n: int, c: int, h: int, w: int) -> IndexPairs:
    # Destination (NHWC) is written sequentially: n, h, w, c.
    chw, hw, wc = c * h * w, h * w, w * c
    for ni in range(n):
        for hi in range(h):
            for wi in range(w):
                for ci in range(c):
                    src_idx = ni * chw + ci * hw + hi * w + wi
                    dst_idx = ni * chw + hi * wc + wi * c + ci
                    yield src_idx, dst_idx


def _nhwc_to_nchw_pairs(n: int, h: int, w: int, c: int) -> IndexPairs:
    # Destination (NCHW) is written sequentially: n, c, h, w.
    hwc, wc, hw = h * w * c, w * c, h * w
    for ni in range(n):
        for ci in range(c):
            for hi in range(h):
                for wi in range(w):
                    src_idx = ni * hwc + hi * wc + wi * c + ci
                    dst_idx = ni * hwc + ci * hw + hi * w + wi
                    yield src_idx, dst_idx


# ====[ Kernels ]====
def nchw_to_nhwc(
    src: Any,
    dst: Any,
    n: int,
    c: int,
    h: int,
    w: int,
    element_width: int,
    size_max: int = SIZE_MAX,
) -> bool:
    """
    Permute a channel-first buffer into channel-last order.

    Parameters
    ----------
    src : buffer
        Source bytes laid out as [N][C][H][W]; read only.
    dst : writable buffer
        Destination, receives [N][H][W][C]. Must not alias `src`.
    n, c, h, w : int
        Positive dimensions.
    element_width : int
        Bytes per element.
    size_max : int, optional
        Overflow ceiling for ``n*c*h*w*element_width``.

    Returns
    -------
    bool
        False (with nothing written) on invalid dims, zero width, overflow,
        missing or undersized buffers; False mid-copy on an out-of-range
        index; True otherwise.
    """
    total = _checked_total((n, c, h, w), element_width, size_max)
    if total is None:
        return False
    n, c, h, w, element_width = _ints(n, c, h, w, element_width)
    views = _open_views(src, dst, total * element_width)
    if views is None:
        return False
    return _remap(*views, _nchw_to_nhwc_pairs(n, c, h, w), total, element_width)


def nhwc_to_nchw(
    src: Any,
    dst: Any,
    n: int,
    h: int,
    w: int,
    c: int,
    element_width: int,
    size_max: int = SIZE_MAX,
) -> bool:
    """
    Permute a channel-last buffer into channel-first order.

    Exact inverse of `nchw_to_nhwc`; dimensions are given in source order
    (n, h, w, c). Same failure contract.
    """
    total = _checked_total((n, h, w, c), element_width, size_max)
    if total is None:
        return False
    n, h, w, c, element_width = _ints(n, h, w, c, element_width)
    views = _open_views(src, dst, total * element_width)
    if views is None:
        return False
    return _remap(*views, _nhwc_to_nchw_pairs(n, h, w, c), total, element_width)


channel_first_to_channel_last = nchw_to_nhwc
channel_last_to_channel_first = nhwc_to_nchw


# ====[ Straight copy ]====
def copy_tensor_data(
    src: Any,
    dst: Any,
    element_width: int,
    total_elements: int,
    size_max: int = SIZE_MAX,
) -> bool:
    """Copy ``element_width * total_elements`` bytes verbatim; False on overflow or short buffers."""
    total = _checked_total((total_elements,), element_width, size_max)
    if total is None:
        return False
    nbytes = total * int(element_width)
    views = _open_views(src, dst, nbytes)
    if views is None:
        return False
    src_view, dst_view = views
    dst_view[:nbytes] = src_view[:nbytes]
    return True
