# ==================================================
# ================  MODULE: result  ================
# ==================================================
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

import numpy as np
import torch

from core.errors import ErrorCode, ConversionError
from core.shape import TensorShape
from core.type_registry import to_numpy_dtype
from utils.buffers import array_from_bytes

__all__ = ["ConversionResult", "release"]


# ==================================================
# ============  CLASS: ConversionResult  ===========
# ==================================================
@dataclass
class ConversionResult:
    """
    Outcome of a layout conversion, owning the destination buffer and shape.

    A result is either fully populated (`success` True, `data` and
    `shape.dims` present) or fully empty (`success` False, both None). Only
    the converter builds populated results; `release()` empties them and may
    be called any number of times.

    Attributes
    ----------
    data : bytearray or None
        Destination bytes, `data_size` long.
    data_size : int
        Size of `data` in bytes.
    shape : TensorShape
        Destination shape; `shape.layout` is the requested destination layout.
    success : bool
        Whether the conversion succeeded.
    error_msg : str
        Bounded diagnostic text, empty on success.
    error_code : ErrorCode
        Failure category, `ErrorCode.NONE` on success or after release.
    """

    data: Optional[bytearray] = None
    data_size: int = 0
    shape: TensorShape = field(default_factory=TensorShape)
    success: bool = False
    error_msg: str = ""
    error_code: ErrorCode = ErrorCode.NONE

    # ====[ Constructors ]====
    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "ConversionResult":
        return cls(success=False, error_msg=message, error_code=code)

    # ====[ Lifecycle ]====
    def release(self) -> None:
        """Free the buffer and dims and reset every field. Idempotent."""
        self.data = None
        self.data_size = 0
        self.shape.release()
        self.success = False
        self.error_msg = ""
        self.error_code = ErrorCode.NONE

    @property
    def released(self) -> bool:
        return self.data is None and self.shape.dims is None and not self.success

    def __enter__(self) -> "ConversionResult":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.release()

    # ====[ Checks ]====
    def is_consistent(self) -> bool:
        """
        Check the ownership invariant.

        Failure: no buffer and no dims. Success: both present, the dims agree
        with `num_dims` and `total_elements`, and
        ``data_size == len(data) == total_elements * width``.
        """
        if not self.success:
            return self.data is None and self.shape.dims is None
        if self.data is None or not self.shape.is_valid():
            return False
        expected = self.shape.nbytes
        return expected is not None and self.data_size == len(self.data) == expected

    def raise_for_status(self) -> "ConversionResult":
        """Raise ConversionError if the conversion failed, else return self."""
        if not self.success:
            raise ConversionError(self.error_msg or "Conversion result is empty", self.error_code)
        return self

    # ====[ Views ]====
    def to_numpy(self) -> np.ndarray:
        """Copy the destination bytes into an array shaped like `shape.dims`."""
        self.raise_for_status()
        return array_from_bytes(self.data, self.shape.as_tuple(), to_numpy_dtype(self.shape.data_type))

    def to_torch(self) -> torch.Tensor:
        """Same as `to_numpy`, as a CPU tensor."""
        self.raise_for_status()
        return array_from_bytes(
            self.data, self.shape.as_tuple(), to_numpy_dtype(self.shape.data_type), framework="torch"
        )


def release(result: Optional[ConversionResult]) -> None:
    """Release `result` if given. Safe on None, on empty results, and when repeated."""
    if result is None:
        return
    result.release()
