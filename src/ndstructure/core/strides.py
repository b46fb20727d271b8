from __future__ import annotations

import itertools
import operator
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from ndstructure.core.common import (
    Index,
    MemoryOrder,
    Shape,
    ShapeLike,
    parse_index,
    parse_shapelike,
)
from ndstructure.core.config import default_order, parse_order
from ndstructure.errors import IndexOutOfBoundsError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = getLogger(__name__)


class Strides(ABC):
    """A bijection between the multi-indices of a shape and linear offsets.

    Offsets address a buffer of ``linear_size`` elements. Implementations must satisfy
    ``offset(index(o)) == o`` for every offset ``o`` in ``[0, linear_size)``.
    """

    @property
    @abstractmethod
    def shape(self) -> Shape: ...

    @property
    @abstractmethod
    def strides(self) -> tuple[int, ...]:
        """Cumulative element counts, from the fastest-varying dimension outward.

        ``strides[0]`` is 1 and ``strides[ndim]`` is ``linear_size``.
        """

    @abstractmethod
    def offset(self, index: Any) -> int:
        """Return the linear offset of a multi-index."""

    @abstractmethod
    def index(self, offset: int) -> Index:
        """Return the multi-index stored at a linear offset."""

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def linear_size(self) -> int:
        """The size of the linear buffer holding every element of the shape."""
        return self.strides[self.ndim]

    def indices(self) -> Iterator[Index]:
        """Iterate over multi-indices in ascending offset order."""
        return (self.index(i) for i in range(self.linear_size))


# guards insertion into the process-wide strides cache
_strides_cache_lock = threading.Lock()
_strides_cache: dict[tuple[Shape, MemoryOrder], DefaultStrides] = {}


@dataclass(frozen=True)
class DefaultStrides(Strides):
    """Dense strides for a shape in C (last index fastest) or F (first index fastest) order.

    Use `DefaultStrides.for_shape` rather than the constructor so that equal shapes
    share a single cached instance.
    """

    _shape: Shape
    order: MemoryOrder = "C"
    _strides: tuple[int, ...] = field(init=False, repr=False, compare=False)
    steps: tuple[int, ...] = field(init=False, repr=False, compare=False)
    _significance: tuple[int, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        shape = parse_shapelike(self._shape)
        order = parse_order(self.order)
        # dimensions from the fastest-varying to the slowest
        significance = tuple(range(len(shape)))
        if order == "C":
            significance = significance[::-1]
        strides = tuple(
            itertools.accumulate((shape[d] for d in significance), operator.mul, initial=1)
        )
        steps = [0] * len(shape)
        for position, d in enumerate(significance):
            steps[d] = strides[position]
        object.__setattr__(self, "_shape", shape)
        object.__setattr__(self, "_strides", strides)
        object.__setattr__(self, "steps", tuple(steps))
        object.__setattr__(self, "_significance", significance)

    @classmethod
    def for_shape(cls, shape: ShapeLike, order: MemoryOrder | None = None) -> DefaultStrides:
        """Return the cached strides for ``shape``, creating them on first use.

        The cache is keyed by shape content, so repeated calls with equal shapes return
        the same instance. Entries are never evicted.
        """
        key = (parse_shapelike(shape), default_order() if order is None else parse_order(order))
        cached = _strides_cache.get(key)
        if cached is not None:
            return cached
        # re-check under the lock, one instance per key
        with _strides_cache_lock:
            cached = _strides_cache.get(key)
            if cached is None:
                logger.debug("Computing strides for shape %s in %s order", key[0], key[1])
                cached = cls(*key)
                _strides_cache[key] = cached
            return cached

    @property
    def shape(self) -> Shape:
        return self._shape

    @property
    def strides(self) -> tuple[int, ...]:
        return self._strides

    def offset(self, index: Any) -> int:
        index = parse_index(index)
        if len(index) != len(self._shape):
            raise IndexOutOfBoundsError(
                f"Index {index} has {len(index)} dimensions, expected {len(self._shape)}"
            )
        result = 0
        for value, dim_len, step in zip(index, self._shape, self.steps, strict=True):
            if value < 0 or value >= dim_len:
                raise IndexOutOfBoundsError(
                    f"Index {value} out of shape bounds: [0, {dim_len}) in index {index}"
                )
            result += value * step
        return result

    def index(self, offset: int) -> Index:
        if offset < 0 or offset >= self.linear_size:
            raise IndexOutOfBoundsError(
                f"Offset {offset} out of bounds: [0, {self.linear_size})"
            )
        res = [0] * len(self._shape)
        current = offset
        # walk from the most significant dimension down
        for d in reversed(self._significance):
            res[d], current = divmod(current, self.steps[d])
        return tuple(res)


def default_strides(shape: ShapeLike, order: MemoryOrder | None = None) -> DefaultStrides:
    """Return the cached `DefaultStrides` for ``shape``."""
    return DefaultStrides.for_shape(shape, order)
