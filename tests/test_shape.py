# ==================================================
# ============ TESTS: Shape Validator ==============
# ==================================================
from __future__ import annotations

import logging

import numpy as np
import pytest

from core.config import INT32_MAX, SIZE_MAX
from core.layout_axes import Layout
from core.shape import (
    TensorShape,
    checked_product,
    format_tensor_info,
    print_tensor_info,
    total_elements,
    validate_shape,
)
from core.type_registry import ElementType


# ===================
# validate_shape
# ===================

@pytest.mark.parametrize(
    "dims",
    [[1], [1, 3, 4, 4], (2, 3, 4), np.array([1, 3, 224, 224]), [1] * 8, [INT32_MAX]],
)
def test_validate_accepts_well_formed_dims(dims):
    assert validate_shape(dims)


@pytest.mark.parametrize(
    "dims",
    [
        None,
        [],
        [1] * 9,
        [2, 3, 0, 4],
        [2, -1],
        [2.0, 3],
        [2, True],
        ["2", 3],
        [INT32_MAX + 1],
        42,
    ],
)
def test_validate_rejects_malformed_dims(dims):
    assert not validate_shape(dims)


def test_validate_honours_custom_limits():
    assert not validate_shape([1, 2, 3], max_rank=2)
    assert not validate_shape([300], dim_max=255)


# ===================
# total_elements
# ===================

def test_total_elements_is_the_product():
    assert total_elements([1, 3, 4, 4]) == 48
    assert total_elements((7,)) == 7


@pytest.mark.parametrize("dims", [[2, 3, 0, 4], [0], [5, -2], [-1, -1], None, []])
def test_non_positive_or_missing_dims_give_zero(dims):
    assert total_elements(dims) == 0
    assert not validate_shape(dims)


def test_overflowing_product_gives_zero_not_a_wrapped_value():
    dims = [INT32_MAX] * 3
    assert total_elements(dims) == 0
    # the wrapped value would be non-zero
    assert (INT32_MAX ** 3) % (SIZE_MAX + 1) != 0


def test_overflow_is_detected_at_the_boundary():
    assert total_elements([SIZE_MAX]) == SIZE_MAX
    assert total_elements([SIZE_MAX, 2]) == 0
    assert total_elements([15, 17], size_max=255) == 255
    assert total_elements([16, 16], size_max=255) == 0


def test_checked_product():
    assert checked_product([2, 3, 4]) == 24
    assert checked_product([]) == 1
    assert checked_product([2, 0]) is None
    assert checked_product([10, 10], size_max=99) is None


# ===================
# TensorShape
# ===================

def test_from_dims_owns_an_int32_copy():
    dims = [1, 3, 4, 4]
    shape = TensorShape.from_dims(dims, ElementType.FLOAT32, Layout.NCHW)

    dims[0] = 99
    assert shape.dims.dtype == np.int32
    assert shape.as_tuple() == (1, 3, 4, 4)
    assert shape.num_dims == 4
    assert shape.total_elements == 48
    assert shape.nbytes == 192
    assert shape.is_valid()


def test_release_empties_the_shape():
    shape = TensorShape.from_dims([2, 2])
    shape.release()
    shape.release()
    assert shape.dims is None
    assert shape.num_dims == 0
    assert shape.total_elements == 0
    assert not shape.is_valid()


def test_inconsistent_shape_is_not_valid():
    shape = TensorShape.from_dims([2, 2])
    shape.num_dims = 3
    assert not shape.is_valid()


# ===================
# Diagnostics
# ===================

def test_format_tensor_info_lists_every_field():
    shape = TensorShape.from_dims([1, 3, 4, 4], ElementType.FLOAT32, Layout.NCHW)
    text = format_tensor_info(shape)

    assert text.splitlines() == [
        "Tensor Info:",
        "  Data Type: 0",
        "  Layout: 1",
        "  Dimensions: 4 [1, 3, 4, 4]",
        "  Total Elements: 48",
        "  Element Size: 4 bytes",
        "  Total Size: 192 bytes",
    ]
    assert shape.format_info() == text


def test_format_tensor_info_reports_invalid_instead_of_raising():
    assert format_tensor_info(None) == "Invalid tensor shape: null pointer"
    assert format_tensor_info(TensorShape()) == "Invalid tensor shape: null dimensions array"

    shape = TensorShape.from_dims([2, 2])
    shape.num_dims = 5
    assert format_tensor_info(shape).startswith("Invalid tensor shape: inconsistent num_dims")


@pytest.mark.parametrize(
    "field, value, expected",
    [
        ("data_type", None, "Invalid tensor shape: data type tag None"),
        ("data_type", "float32", "Invalid tensor shape: data type tag 'float32'"),
        ("layout", None, "Invalid tensor shape: layout tag None"),
        ("layout", 1.5, "Invalid tensor shape: layout tag 1.5"),
    ],
)
def test_format_tensor_info_reports_non_integer_tags(field, value, expected):
    shape = TensorShape.from_dims([2, 2])
    setattr(shape, field, value)
    assert format_tensor_info(shape) == expected
    assert print_tensor_info(shape, logger=logging.getLogger("tensor_converter_test_bad_tags")) == expected


def test_format_tensor_info_unknown_type_size():
    shape = TensorShape.from_dims([2, 2], data_type=99)
    text = format_tensor_info(shape)
    assert "  Element Size: 0 bytes" in text
    assert text.endswith("Total Size: overflow or invalid")


def test_print_tensor_info_goes_through_a_logger():
    records = []

    class _Collect(logging.Handler):
        def emit(self, record):
            records.append(record.getMessage())

    logger = logging.getLogger("tensor_converter_test_print_info")
    logger.propagate = False
    logger.setLevel(logging.INFO)
    handler = _Collect()
    logger.addHandler(handler)
    try:
        text = print_tensor_info(TensorShape.from_dims([2, 3], ElementType.INT8), logger=logger)
    finally:
        logger.removeHandler(handler)

    assert records == text.splitlines()
    assert records[-1] == "  Total Size: 6 bytes"
