# ==================================================
# ================ TESTS: fixtures =================
# ==================================================
from __future__ import annotations

import logging
import uuid
from typing import List

import numpy as np
import pytest

from core.config import ConverterConfig
from core.type_registry import ElementType
from operators.layout_converter import LayoutConverter


# ===================
# Helpers
# ===================

class ListHandler(logging.Handler):
    """Collect formatted records in memory (the converter loggers do not propagate)."""

    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.messages: List[str] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.messages.append(record.getMessage())


def random_bytes(nbytes: int, seed: int = 123) -> bytes:
    """Deterministic random payload; a fixed seed keeps tests reproducible."""
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=nbytes, dtype=np.uint8).tobytes()


# ===================
# Fixtures
# ===================

@pytest.fixture
def config() -> ConverterConfig:
    """Default limits with a per-test logger name so handlers never leak between tests."""
    return ConverterConfig(logger_name=f"tensor_converter_test_{uuid.uuid4().hex[:8]}")


@pytest.fixture
def converter(config: ConverterConfig) -> LayoutConverter:
    return LayoutConverter(config)


@pytest.fixture
def log_records(converter: LayoutConverter) -> ListHandler:
    handler = ListHandler()
    converter.logger.addHandler(handler)
    yield handler
    converter.logger.removeHandler(handler)


@pytest.fixture
def make_bytes():
    return random_bytes


@pytest.fixture
def sequential_nchw() -> np.ndarray:
    """float32 [1, 3, 4, 4] buffer holding 0..47."""
    return np.arange(48, dtype=np.float32).reshape(1, 3, 4, 4)


@pytest.fixture(params=list(ElementType), ids=lambda t: t.name)
def element_type(request) -> ElementType:
    return request.param
