# ==================================================
# ==========  MODULE: layout_converter  ============
# ==================================================
from __future__ import annotations

from typing import Any, List, Optional, Sequence
import numbers

import numpy as np

from core.config import ConverterConfig
from core.errors import ErrorCode, UnsupportedTypeError, format_error_message
from core.layout_axes import Layout, SUPPORTED_TRANSITIONS, coerce_layout, detect_layout, permuted_dims
from core.result import ConversionResult
from core.shape import TensorShape, as_dim_list, total_elements, validate_shape
from core.type_registry import (
    ElementType,
    coerce_element_type,
    element_type_from_dtype,
    get_backend,
    width_of,
)
from operators.permute import copy_tensor_data, nchw_to_nhwc, nhwc_to_nchw
from utils.buffers import ArrayLike
from utils.decorators import timed_wrapper
from utils.logger import get_debug_logger, get_error_logger, get_logger

# Public API
__all__ = [
    "LayoutConverter",
    "convert",
    "onnx_to_tflite_with_layout",
    "tflite_to_onnx_with_layout",
    "convert_array",
]


# ====[ Allocation ]====
def _allocate_buffer(nbytes: int) -> bytearray:
    return bytearray(nbytes)


def _allocate_dims(rank: int) -> np.ndarray:
    return np.zeros(rank, dtype=np.int32)


# ==================================================
# ================ LayoutConverter =================
# ==================================================

class LayoutConverter:
    """
    Validating NCHW <-> NHWC converter over raw byte buffers.

    Notes
    -----
    - Failures are returned as `ConversionResult` values, never raised.
    - Source buffers are only read; each call owns its destination buffer
      until the result is handed back.
    - Permutation runs only for rank-4 NCHW <-> NHWC requests; UNKNOWN on
      either side means a verbatim copy.
    """

    def __init__(self, config: Optional[ConverterConfig] = None) -> None:
        """
        Parameters
        ----------
        config : ConverterConfig, optional
            Limits, heuristic thresholds and logging settings.
        """
        self.config: ConverterConfig = config or ConverterConfig()
        name = self.config.logger_name
        self.logger = get_logger(name, log_dir=self.config.log_dir, level=self.config.log_level)
        self.debug_logger = get_debug_logger(f"{name}.debug", log_dir=self.config.log_dir)

        if self.config.time_calls:
            self.convert = timed_wrapper(
                self.convert,
                label="convert",
                info_logger=self.debug_logger,
                error_logger=get_error_logger(f"{name}.errors", log_dir=self.config.log_dir),
            )

    # ====[ Failure helper ]====
    def _fail(self, code: ErrorCode, detail: Optional[str] = None) -> ConversionResult:
        message = format_error_message(code, detail, self.config.error_msg_size)
        self.logger.warning(f"[LayoutConverter] {message}")
        return ConversionResult.failure(code, message)

    # ====[ Layout plan ]====
    def detect_layout(self, dims: Optional[Sequence[int]]) -> Layout:
        """Guess the layout of `dims` with this converter's heuristic thresholds."""
        return detect_layout(dims, self.config.heuristic)

    @staticmethod
    def needs_permutation(rank: int, src_layout: Layout, dst_layout: Layout) -> Optional[bool]:
        """
        Decide how a request is served.

        Returns
        -------
        bool or None
            True for a supported NCHW <-> NHWC permutation, False for a verbatim
            copy, None for an explicit pair that cannot be converted.
        """
        if rank != 4 or src_layout == dst_layout:
            return False
        if (src_layout, dst_layout) in SUPPORTED_TRANSITIONS:
            return True
        if Layout.UNKNOWN in (src_layout, dst_layout):
            return False
        return None

    # ====[ Main entry ]====
    def convert(
        self,
        src_data: Any,
        dims: Optional[Sequence[int]],
        rank: Optional[int],
        element_type: Any,
        src_layout: Any,
        dst_layout: Any,
    ) -> ConversionResult:
        """
        Convert `src_data` from `src_layout` to `dst_layout`.

        Parameters
        ----------
        src_data : buffer | np.ndarray | torch.Tensor
            Source bytes, read only.
        dims : sequence of int
            Source shape, in source-layout order.
        rank : int or None
            Number of entries of `dims` to use; None means all of them.
        element_type : ElementType or int
            Element type tag.
        src_layout, dst_layout : Layout or int or str
            Source and requested destination layouts.

        Returns
        -------
        ConversionResult
            Populated on success (dims reordered when a permutation ran), empty
            with an error code and message on failure.
        """
        cfg = self.config

        # ====[ Inputs ]====
        if src_data is None or dims is None:
            return self._fail(ErrorCode.NULL_POINTER)

        values = as_dim_list(dims)
        if values is None:
            return self._fail(ErrorCode.INVALID_DIMENSIONS)
        if rank is None:
            rank = len(values)
        if isinstance(rank, bool) or not isinstance(rank, numbers.Integral):
            return self._fail(ErrorCode.INVALID_DIMENSIONS, f"rank {rank!r}")
        rank = int(rank)
        if rank <= 0 or rank > len(values):
            return self._fail(ErrorCode.INVALID_DIMENSIONS, f"rank {rank}")
        values = values[:rank]

        if not validate_shape(values, cfg.max_rank, cfg.dim_max):
            return self._fail(ErrorCode.INVALID_DIMENSIONS)

        # ====[ Type & sizes ]====
        try:
            etype = coerce_element_type(element_type)
            width = width_of(etype)
        except UnsupportedTypeError:
            return self._fail(ErrorCode.UNSUPPORTED_TYPE, str(getattr(element_type, "value", element_type)))

        count = total_elements(values, cfg.size_max)
        if count == 0:
            return self._fail(ErrorCode.INVALID_DIMENSIONS)
        if count > cfg.size_max // width:
            return self._fail(ErrorCode.INVALID_DIMENSIONS, "size too large")
        total_bytes = count * width

        # ====[ Layout plan ]====
        try:
            src = coerce_layout(src_layout)
            dst = coerce_layout(dst_layout)
        except (TypeError, ValueError):
            detail = f"invalid layout format ({src_layout!r} to {dst_layout!r})"
            return self._fail(ErrorCode.LAYOUT_CONVERSION_FAILED, detail)

        permute = self.needs_permutation(rank, src, dst)
        if permute is None:
            return self._fail(ErrorCode.LAYOUT_CONVERSION_FAILED, f"from {int(src)} to {int(dst)}")

        # ====[ Allocation ]====
        try:
            data = _allocate_buffer(total_bytes)
        except (MemoryError, OverflowError):
            return self._fail(ErrorCode.MEMORY_ALLOCATION, f"{total_bytes} bytes")
        try:
            out_dims = _allocate_dims(rank)
        except (MemoryError, OverflowError):
            del data
            return self._fail(ErrorCode.MEMORY_ALLOCATION)

        # ====[ Permute or copy ]====
        if permute:
            out_dims[:] = permuted_dims(values, src, dst)
            kernel = nchw_to_nhwc if src == Layout.NCHW else nhwc_to_nchw
            if not kernel(src_data, data, *values, width, size_max=cfg.size_max):
                del data, out_dims
                return self._fail(ErrorCode.LAYOUT_CONVERSION_FAILED)
        else:
            out_dims[:] = values
            if not copy_tensor_data(src_data, data, width, count, size_max=cfg.size_max):
                del data, out_dims
                return self._fail(ErrorCode.DATA_COPY_FAILED)

        shape = TensorShape(dims=out_dims, num_dims=rank, data_type=etype, total_elements=count, layout=dst)
        self.debug_logger.debug(
            f"[LayoutConverter] {values} {etype.name} {src.name} -> {dst.name} "
            f"({'permute' if permute else 'copy'}, {total_bytes} bytes) -> {out_dims.tolist()}"
        )
        return ConversionResult(data=data, data_size=total_bytes, shape=shape, success=True)

    # ====[ Arrays ]====
    def convert_array(self, array: ArrayLike, src_layout: Any, dst_layout: Any) -> ArrayLike:
        """
        Backend-preserving conversion of a NumPy array or PyTorch tensor.

        NumPy in -> NumPy out; Torch in -> Torch out (on the input's device).
        The element type is taken from the array's dtype.

        Raises
        ------
        TypeError
            If `array` is neither a NumPy array nor a tensor.
        UnsupportedTypeError
            If the dtype has no element-type tag.
        ConversionError
            If the conversion fails.
        """
        backend = get_backend(array)
        if backend is None:
            raise TypeError(f"Unsupported array type for layout conversion: {type(array).__name__}")

        etype = element_type_from_dtype(array.dtype)
        dims: List[int] = [int(d) for d in array.shape]
        with self.convert(array, dims, None, etype, src_layout, dst_layout) as result:
            result.raise_for_status()
            if backend == "torch":
                return result.to_torch().to(array.device)
            return result.to_numpy()


# ====[ Functional API ]====
def convert(
    src_data: Any,
    dims: Optional[Sequence[int]],
    rank: Optional[int],
    element_type: Any,
    src_layout: Any,
    dst_layout: Any,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult:
    """Functional form of `LayoutConverter.convert`."""
    return LayoutConverter(config).convert(src_data, dims, rank, element_type, src_layout, dst_layout)


def onnx_to_tflite_with_layout(
    onnx_data: Any,
    dims: Optional[Sequence[int]],
    num_dims: Optional[int] = None,
    data_type: Any = ElementType.FLOAT32,
    src_layout: Any = Layout.NCHW,
    dst_layout: Any = Layout.NHWC,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult:
    """ONNX-side (NCHW) to TFLite-side (NHWC) conversion; layouts may be overridden."""
    return convert(onnx_data, dims, num_dims, data_type, src_layout, dst_layout, config)


def tflite_to_onnx_with_layout(
    tflite_data: Any,
    dims: Optional[Sequence[int]],
    num_dims: Optional[int] = None,
    data_type: Any = ElementType.FLOAT32,
    src_layout: Any = Layout.NHWC,
    dst_layout: Any = Layout.NCHW,
    config: Optional[ConverterConfig] = None,
) -> ConversionResult:
    """TFLite-side (NHWC) to ONNX-side (NCHW) conversion; layouts may be overridden."""
    return convert(tflite_data, dims, num_dims, data_type, src_layout, dst_layout, config)


def convert_array(
    array: ArrayLike,
    src_layout: Any,
    dst_layout: Any,
    config: Optional[ConverterConfig] = None,
) -> ArrayLike:
    """Functional form of `LayoutConverter.convert_array`."""
    return LayoutConverter(config).convert_array(array, src_layout, dst_layout)
