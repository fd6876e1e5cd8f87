"""
Helpers for the fixed-size embedding vectors used across the system.

Wire format: consecutive little-endian 32-bit floats. A full 1536-component
vector serializes to 6144 bytes.
"""

from typing import List, Sequence

import numpy as np

from .errors import DimensionError

EMBEDDING_DIMENSION = 1536
"""Number of components produced by text-embedding-3-small"""

_FLOAT32_LE = np.dtype("<f4")


def zero_vector(dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    """Return the all-zero vector used for empty source text."""
    return [0.0] * dimension


def validate_dimension(
    vector: Sequence[float], expected: int = EMBEDDING_DIMENSION
) -> None:
    """
    Check that a vector has exactly `expected` components.

    Raises:
        DimensionError: If the length differs
    """
    if len(vector) != expected:
        raise DimensionError(expected, len(vector))


def serialize_vector(vector: Sequence[float]) -> bytes:
    """Encode a vector as raw little-endian float32 bytes."""
    return np.asarray(vector, dtype=_FLOAT32_LE).tobytes()


def deserialize_vector(blob: bytes) -> List[float]:
    """Decode raw little-endian float32 bytes back into a list of floats."""
    if len(blob) % _FLOAT32_LE.itemsize != 0:
        raise ValueError(
            f"Vector blob length must be a multiple of 4 bytes, got {len(blob)}"
        )
    return np.frombuffer(blob, dtype=_FLOAT32_LE).astype(float).tolist()


def to_vector_literal(vector: Sequence[float]) -> str:
    """Render a vector as a pgvector text literal, e.g. '[1.0,2.0,3.0]'."""
    values = np.asarray(vector, dtype=_FLOAT32_LE)
    return "[" + ",".join(repr(float(x)) for x in values) + "]"


def distance_to_similarity(distance: float) -> float:
    """
    Convert a cosine distance in [0, 2] into a similarity in [0, 1].

    1.0 means identical direction, 0.0 means opposite vectors. Values are
    clamped because float32 arithmetic can land slightly outside the range.
    """
    similarity = 1.0 - float(distance) / 2.0
    return min(1.0, max(0.0, similarity))
