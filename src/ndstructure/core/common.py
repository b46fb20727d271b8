from __future__ import annotations

import numbers
from collections.abc import Iterable
from typing import Any, Literal, TypeGuard

ShapeLike = Iterable[int] | int
Shape = tuple[int, ...]
Index = tuple[int, ...]
MemoryOrder = Literal["C", "F"]


def is_integer(x: Any) -> TypeGuard[int]:
    """True if x is an integer (both pure Python or NumPy)."""
    return isinstance(x, numbers.Integral) and not isinstance(x, bool)


def parse_shapelike(data: ShapeLike) -> Shape:
    """Normalize ``data`` to a tuple of positive Python ints.

    A structure needs at least one element along every dimension, so zero-length
    dimensions are rejected along with negative ones.
    """
    if is_integer(data):
        if data < 1:
            raise ValueError(f"Expected a positive integer. Got {data} instead")
        return (int(data),)
    try:
        data_tuple = tuple(data)  # type: ignore[arg-type]
    except TypeError as e:
        msg = f"Expected an integer or an iterable of integers. Got {data} instead."
        raise TypeError(msg) from e

    if not all(is_integer(v) for v in data_tuple):
        msg = f"Expected an iterable of integers. Got {data} instead."
        raise TypeError(msg)
    if not all(v > 0 for v in data_tuple):
        msg = f"Expected all values to be positive. Got {data} instead."
        raise ValueError(msg)
    return tuple(int(v) for v in data_tuple)


def parse_index(data: Any) -> Index:
    """Normalize a multi-index to a tuple of Python ints.

    A bare integer is accepted as the index of a one-dimensional structure.
    """
    if is_integer(data):
        return (int(data),)
    try:
        data_tuple = tuple(data)
    except TypeError as e:
        msg = f"Expected an integer or an iterable of integers. Got {data!r} instead."
        raise TypeError(msg) from e
    if not all(is_integer(v) for v in data_tuple):
        msg = f"Expected an iterable of integers. Got {data!r} instead."
        raise TypeError(msg)
    return tuple(int(v) for v in data_tuple)
