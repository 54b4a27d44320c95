# ==================================================
# ============  MODULE: type_registry  =============
# ==================================================
from __future__ import annotations

from enum import IntEnum
from typing import Any, Optional

import numpy as np
import torch

from core.errors import UnsupportedTypeError

__all__ = [
    "ElementType",
    "TYPE_REGISTRY",
    "width_of",
    "element_size",
    "coerce_element_type",
    "to_numpy_dtype",
    "to_torch_dtype",
    "element_type_from_dtype",
    "get_backend",
]


# ====[ Element type tags ]====
class ElementType(IntEnum):
    """Scalar element type of a tensor buffer. Values match the ONNX-side tags."""

    FLOAT32 = 0
    INT32 = 1
    UINT8 = 2
    INT64 = 3
    INT16 = 6
    INT8 = 8
    FLOAT16 = 9


# ====[ Central registry ]====
# tag -> byte width and backend dtypes
TYPE_REGISTRY: dict[ElementType, dict[str, Any]] = {
    ElementType.FLOAT32: {"width": 4, "numpy": np.float32, "torch": torch.float32},
    ElementType.INT32: {"width": 4, "numpy": np.int32, "torch": torch.int32},
    ElementType.UINT8: {"width": 1, "numpy": np.uint8, "torch": torch.uint8},
    ElementType.INT64: {"width": 8, "numpy": np.int64, "torch": torch.int64},
    ElementType.INT16: {"width": 2, "numpy": np.int16, "torch": torch.int16},
    ElementType.INT8: {"width": 1, "numpy": np.int8, "torch": torch.int8},
    # float16 is 2 bytes on every supported target
    ElementType.FLOAT16: {"width": 2, "numpy": np.float16, "torch": torch.float16},
}

# ====[ Array backends ]====
_BACKENDS: dict[str, Any] = {
    "numpy": lambda x: isinstance(x, np.ndarray),
    "torch": lambda x: isinstance(x, torch.Tensor),
}


# ====[ Lookup ]====
def coerce_element_type(value: Any) -> ElementType:
    """
    Return `value` as an ElementType.

    Accepts ElementType members and their integer tags. Anything else,
    including bools and unknown integers such as 99, raises UnsupportedTypeError.
    """
    if isinstance(value, ElementType):
        return value
    if isinstance(value, bool) or not isinstance(value, (int, np.integer)):
        raise UnsupportedTypeError(value)
    try:
        return ElementType(int(value))
    except ValueError:
        raise UnsupportedTypeError(value) from None


def width_of(element_type: Any) -> int:
    """
    Byte width of one element of `element_type`.

    Raises
    ------
    UnsupportedTypeError
        If the tag has no known width.
    """
    return TYPE_REGISTRY[coerce_element_type(element_type)]["width"]


def element_size(element_type: Any) -> int:
    """Like `width_of`, but returns 0 for unknown tags instead of raising."""
    try:
        return width_of(element_type)
    except UnsupportedTypeError:
        return 0


def to_numpy_dtype(element_type: Any) -> np.dtype:
    """NumPy dtype for `element_type` (native byte order)."""
    return np.dtype(TYPE_REGISTRY[coerce_element_type(element_type)]["numpy"])


def to_torch_dtype(element_type: Any) -> torch.dtype:
    """PyTorch dtype for `element_type`."""
    return TYPE_REGISTRY[coerce_element_type(element_type)]["torch"]


def element_type_from_dtype(dtype: Any) -> ElementType:
    """
    Reverse lookup from a NumPy or PyTorch dtype.

    Raises
    ------
    UnsupportedTypeError
        If no registered element type uses `dtype` (e.g. float64, bool).
    """
    if isinstance(dtype, torch.dtype):
        for tag, entry in TYPE_REGISTRY.items():
            if entry["torch"] == dtype:
                return tag
        raise UnsupportedTypeError(str(dtype))

    try:
        np_dtype = np.dtype(dtype)
    except TypeError:
        raise UnsupportedTypeError(str(dtype)) from None
    for tag, entry in TYPE_REGISTRY.items():
        if np.dtype(entry["numpy"]) == np_dtype:
            return tag
    raise UnsupportedTypeError(str(np_dtype))


# ====[ Backend Detection ]====
def get_backend(obj: Any) -> Optional[str]:
    """Return 'numpy' or 'torch' for array-like objects, else None."""
    for name, check in _BACKENDS.items():
        if check(obj):
            return name
    return None
