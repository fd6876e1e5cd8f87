"""
Tests for the vector codec helpers.
"""

import math

import pytest

from ticker_scout.domain.errors import DimensionError
from ticker_scout.domain.vectors import (
    EMBEDDING_DIMENSION,
    deserialize_vector,
    distance_to_similarity,
    serialize_vector,
    to_vector_literal,
    validate_dimension,
    zero_vector,
)


def test_full_vector_serializes_to_6144_bytes():
    blob = serialize_vector([0.5] * EMBEDDING_DIMENSION)

    assert len(blob) == 6144


def test_serialization_is_little_endian_float32():
    assert serialize_vector([1.0]) == b"\x00\x00\x80\x3f"


def test_deserialize_recovers_float32_values():
    assert deserialize_vector(serialize_vector([1.0, -2.5, 0.25])) == [1.0, -2.5, 0.25]


def test_deserialize_rejects_partial_floats():
    with pytest.raises(ValueError, match="multiple of 4"):
        deserialize_vector(b"\x00\x00\x00")


def test_zero_vector():
    vector = zero_vector()

    assert len(vector) == EMBEDDING_DIMENSION
    assert not any(vector)


def test_validate_dimension_raises_dimension_error():
    with pytest.raises(DimensionError) as exc_info:
        validate_dimension([0.0] * 3)

    assert exc_info.value.expected == 1536
    assert exc_info.value.actual == 3
    assert isinstance(exc_info.value, ValueError)


def test_validate_dimension_accepts_exact_length():
    validate_dimension([0.0] * EMBEDDING_DIMENSION)


def test_vector_literal():
    assert to_vector_literal([1, 2, 3]) == "[1.0,2.0,3.0]"


@pytest.mark.parametrize(
    "distance, expected",
    [(0.0, 1.0), (1.0, 0.5), (2.0, 0.0), (-1e-7, 1.0), (2.0000002, 0.0)],
)
def test_distance_to_similarity(distance, expected):
    assert math.isclose(distance_to_similarity(distance), expected, abs_tol=1e-9)
