# ==================================================
# ================  MODULE: shape  =================
# ==================================================
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence
import logging

import numpy as np

from core.config import INT32_MAX, MAX_RANK, SIZE_MAX
from core.layout_axes import Layout
from core.type_registry import ElementType, element_size
from utils.logger import get_logger

__all__ = [
    "as_dim_list",
    "checked_product",
    "validate_shape",
    "total_elements",
    "TensorShape",
    "format_tensor_info",
    "print_tensor_info",
]


# ====[ Helpers ]====
def as_dim_list(dims: Any) -> Optional[List[int]]:
    """
    Return `dims` as a list of Python ints, or None if it is not a sequence
    of integers (bools and floats are rejected).
    """
    if dims is None:
        return None
    try:
        items = list(dims)
    except TypeError:
        return None
    out: List[int] = []
    for d in items:
        if isinstance(d, (bool, np.bool_)) or not isinstance(d, (int, np.integer)):
            return None
        out.append(int(d))
    return out


def checked_product(factors: Iterable[int], size_max: int = SIZE_MAX) -> Optional[int]:
    """
    Multiply `factors` left to right without exceeding `size_max`.

    The overflow test runs before each multiplication. Returns None on a
    non-positive factor or when the product would exceed `size_max`.
    """
    total = 1
    for f in factors:
        f = int(f)
        if f <= 0:
            return None
        if total > size_max // f:
            return None
        total *= f
    return total


# ====[ Validation ]====
def validate_shape(dims: Any, max_rank: int = MAX_RANK, dim_max: int = INT32_MAX) -> bool:
    """
    Structural check of a dimension list.

    Rejects None or empty input, rank above `max_rank`, non-integer entries,
    non-positive entries and entries above `dim_max`. Totals are not computed.
    """
    values = as_dim_list(dims)
    if not values or len(values) > max_rank:
        return False
    return all(0 < d <= dim_max for d in values)


def total_elements(dims: Any, size_max: int = SIZE_MAX) -> int:
    """
    Product of `dims`, or 0 when the list is invalid.

    0 is returned for None/empty input, non-positive dimensions, and products
    that would exceed `size_max`. A real tensor never has 0 elements, so 0
    doubles as the invalid sentinel.
    """
    values = as_dim_list(dims)
    if not values:
        return 0
    return checked_product(values, size_max) or 0


# ==================================================
# ===============  CLASS: TensorShape  =============
# ==================================================
@dataclass
class TensorShape:
    """
    Shape descriptor owning its dimension sequence.

    Attributes
    ----------
    dims : np.ndarray or None
        int32 dimension array; None once released.
    num_dims : int
        Number of dimensions.
    data_type : ElementType or int
        Element type tag.
    total_elements : int
        Product of `dims` (0 when invalid or released).
    layout : Layout
        Memory layout of the data described by this shape.
    """

    dims: Optional[np.ndarray] = None
    num_dims: int = 0
    data_type: Any = ElementType.FLOAT32
    total_elements: int = 0
    layout: Layout = Layout.UNKNOWN

    @classmethod
    def from_dims(
        cls,
        dims: Sequence[int],
        data_type: Any = ElementType.FLOAT32,
        layout: Layout = Layout.UNKNOWN,
        size_max: int = SIZE_MAX,
    ) -> "TensorShape":
        """Build a descriptor from `dims` (copied into a fresh int32 array)."""
        arr = np.array(list(dims), dtype=np.int32)
        return cls(
            dims=arr,
            num_dims=int(arr.size),
            data_type=data_type,
            total_elements=total_elements(arr.tolist(), size_max),
            layout=layout,
        )

    @property
    def element_width(self) -> int:
        """Byte width of `data_type` (0 if unsupported)."""
        return element_size(self.data_type)

    @property
    def nbytes(self) -> Optional[int]:
        """Total byte size, or None when unsupported type or overflow."""
        width = self.element_width
        if width == 0 or self.total_elements <= 0:
            return None
        return checked_product((self.total_elements, width))

    def as_tuple(self) -> tuple:
        return tuple(int(d) for d in self.dims) if self.dims is not None else ()

    def is_valid(self) -> bool:
        """True when dims are present, consistent with `num_dims`, and positive."""
        if self.dims is None or len(self.dims) != self.num_dims:
            return False
        return validate_shape(self.dims.tolist()) and self.total_elements == total_elements(self.dims.tolist())

    def release(self) -> None:
        """Drop the dimension sequence and zero the counters."""
        self.dims = None
        self.num_dims = 0
        self.total_elements = 0

    def format_info(self) -> str:
        return format_tensor_info(self)


# ====[ Diagnostics ]====
def format_tensor_info(shape: Optional[TensorShape]) -> str:
    """
    Render a shape descriptor as multi-line text.

    Malformed descriptors (None, no dims, `num_dims` disagreeing with the dims
    array, non-integer type or layout tags) produce a single "Invalid tensor shape: ..." line instead of raising.
    """
    if shape is None:
        return "Invalid tensor shape: null pointer"
    if shape.dims is None:
        return "Invalid tensor shape: null dimensions array"
    if shape.num_dims != len(shape.dims):
        return (
            f"Invalid tensor shape: inconsistent num_dims "
            f"({shape.num_dims} declared, {len(shape.dims)} present)"
        )
    for label, tag in (("data type", shape.data_type), ("layout", shape.layout)):
        if isinstance(tag, bool) or not isinstance(tag, (int, np.integer)):
            return f"Invalid tensor shape: {label} tag {tag!r}"

    width = shape.element_width
    nbytes = shape.nbytes
    dims_txt = ", ".join(str(int(d)) for d in shape.dims)
    lines = [
        "Tensor Info:",
        f"  Data Type: {int(shape.data_type)}",
        f"  Layout: {int(shape.layout)}",
        f"  Dimensions: {shape.num_dims} [{dims_txt}]",
        f"  Total Elements: {shape.total_elements}",
        f"  Element Size: {width} bytes",
        f"  Total Size: {nbytes} bytes" if nbytes is not None else "  Total Size: overflow or invalid",
    ]
    return "\n".join(lines)


def print_tensor_info(
    shape: Optional[TensorShape],
    logger: Optional[logging.Logger] = None,
    level: int = logging.INFO,
) -> str:
    """Log `format_tensor_info(shape)` line by line and return the text."""
    text = format_tensor_info(shape)
    log = logger or get_logger()
    for line in text.splitlines():
        log.log(level, line)
    return text
