# ==================================================
# ============ TESTS: Type Registry ================
# ==================================================
from __future__ import annotations

import numpy as np
import pytest
import torch

from core.errors import ErrorCode, UnsupportedTypeError
from core.type_registry import (
    ElementType,
    coerce_element_type,
    element_size,
    element_type_from_dtype,
    get_backend,
    to_numpy_dtype,
    to_torch_dtype,
    width_of,
)


@pytest.mark.parametrize(
    "tag, width",
    [
        (ElementType.FLOAT32, 4),
        (ElementType.INT32, 4),
        (ElementType.UINT8, 1),
        (ElementType.INT64, 8),
        (ElementType.INT16, 2),
        (ElementType.INT8, 1),
        (ElementType.FLOAT16, 2),
    ],
)
def test_width_of_known_tags(tag: ElementType, width: int):
    assert width_of(tag) == width
    assert width_of(int(tag)) == width
    assert element_size(tag) == width


def test_tag_values_match_onnx_side_numbering():
    assert [int(t) for t in ElementType] == [0, 1, 2, 3, 6, 8, 9]


@pytest.mark.parametrize("tag", [99, 4, 5, 7, -1, "float32", None, 1.0, True])
def test_unknown_tags_are_unsupported(tag):
    with pytest.raises(UnsupportedTypeError) as info:
        width_of(tag)
    assert info.value.code is ErrorCode.UNSUPPORTED_TYPE
    assert isinstance(info.value, ValueError)
    assert element_size(tag) == 0


def test_unsupported_message_names_the_tag():
    with pytest.raises(UnsupportedTypeError, match="Unsupported data type: 99"):
        coerce_element_type(99)


def test_numpy_integer_tags_are_accepted():
    assert coerce_element_type(np.int64(9)) is ElementType.FLOAT16


def test_dtype_mappings_agree_with_widths(element_type: ElementType):
    np_dtype = to_numpy_dtype(element_type)
    torch_dtype = to_torch_dtype(element_type)

    assert np_dtype.itemsize == width_of(element_type)
    assert torch.empty(0, dtype=torch_dtype).element_size() == width_of(element_type)
    assert element_type_from_dtype(np_dtype) is element_type
    assert element_type_from_dtype(torch_dtype) is element_type


@pytest.mark.parametrize("dtype", [np.float64, np.bool_, np.uint16, torch.float64, torch.bool, "not-a-dtype"])
def test_unregistered_dtypes_raise(dtype):
    with pytest.raises(UnsupportedTypeError):
        element_type_from_dtype(dtype)


def test_get_backend():
    assert get_backend(np.zeros(2)) == "numpy"
    assert get_backend(torch.zeros(2)) == "torch"
    assert get_backend(b"\x00\x01") is None
    assert get_backend([1, 2]) is None
