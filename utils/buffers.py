# ==================================================
# ===============  MODULE: buffers  ================
# ==================================================
from __future__ import annotations

from typing import Any, Optional, Sequence, Union

import numpy as np
import torch

__all__ = ["ArrayLike", "as_byte_view", "array_from_bytes"]

ArrayLike = Union[np.ndarray, torch.Tensor]


def as_byte_view(buf: Any, writable: bool = False) -> Optional[memoryview]:
    """
    Flat unsigned-byte view over `buf`, or None if no such view exists.

    Parameters
    ----------
    buf : bytes | bytearray | memoryview | np.ndarray | torch.Tensor | None
        Source or destination buffer.
    writable : bool, default False
        Require a view whose writes reach `buf` itself. Read-only objects,
        non-contiguous arrays and tensors are then refused.

    Returns
    -------
    memoryview or None
        One-dimensional view with format 'B'.

    Notes
    -----
    - For reading, NumPy arrays are made C-contiguous and tensors are moved
      to CPU and made contiguous (both may copy).
    """
    if buf is None:
        return None

    if isinstance(buf, torch.Tensor):
        if writable:
            return None
        # raw bytes, so dtypes NumPy lacks (bfloat16) are still readable
        buf = buf.detach().cpu().contiguous().reshape(-1).view(torch.uint8).numpy()

    if isinstance(buf, np.ndarray):
        if writable:
            if not (buf.flags.c_contiguous and buf.flags.writeable):
                return None
            arr = buf
        else:
            arr = np.ascontiguousarray(buf)
        return memoryview(arr.reshape(-1).view(np.uint8))

    try:
        view = memoryview(buf)
    except TypeError:
        return None
    if writable and view.readonly:
        return None
    if not view.c_contiguous:
        return None
    if view.ndim != 1 or view.format != "B":
        view = view.cast("B")
    return view


def array_from_bytes(
    data: Union[bytes, bytearray, memoryview],
    dims: Sequence[int],
    dtype: np.dtype,
    framework: str = "numpy",
) -> ArrayLike:
    """
    Build an owned NumPy array or tensor of shape `dims` from raw bytes.

    The result is a copy, so it stays valid after the source buffer is released.
    """
    arr = np.frombuffer(data, dtype=dtype).reshape(tuple(int(d) for d in dims)).copy()
    if framework == "torch":
        return torch.from_numpy(arr)
    if framework != "numpy":
        raise ValueError(f"Unsupported framework '{framework}'. Expected 'numpy' or 'torch'.")
    return arr
