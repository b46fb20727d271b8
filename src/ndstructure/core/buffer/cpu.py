from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    TypeVar,
)

import numpy as np
import numpy.typing as npt

from ndstructure.core.buffer import core
from ndstructure.registry import (
    register_buffer,
    register_mutable_buffer,
)

if TYPE_CHECKING:
    from collections.abc import Callable
    from typing import Self

    from ndstructure.core.buffer.core import ArrayLike

T = TypeVar("T")


def _fill(size: int, initializer: Callable[[int], Any], dtype: npt.DTypeLike | None) -> npt.NDArray[Any]:
    if size < 0:
        raise ValueError(f"Expected a non-negative buffer size. Got {size} instead")
    dtype = np.dtype(object) if dtype is None else np.dtype(dtype)
    if dtype.hasobject:
        # fromiter would try to unpack sequence elements, so fill boxed storage one by one
        data = np.empty(size, dtype=dtype)
        for i in range(size):
            data[i] = initializer(i)
        return data
    values = (core.check_storable(initializer(i), dtype) for i in range(size))
    return np.fromiter(values, dtype=dtype, count=size)


class Buffer(core.Buffer[T]):
    """A fixed-size linear block of elements held in a NumPy array

    The underlying array is marked read-only. Element access returns NumPy scalars
    for typed buffers and the stored Python objects for boxed buffers.

    Parameters
    ----------
    array_like
        array-like object that must be 1-dim.
    """

    def __init__(self, array_like: ArrayLike) -> None:
        data = np.asanyarray(array_like)
        if self._writeable:
            if not data.flags.writeable:
                data = data.copy()
        elif data.flags.writeable:
            # a view, so the caller's array stays writeable
            data = data.view()
            data.flags.writeable = False
        super().__init__(data)

    @classmethod
    def create(
        cls,
        size: int,
        initializer: Callable[[int], T],
        dtype: npt.DTypeLike | None = None,
    ) -> Self:
        return cls(_fill(size, initializer, dtype))

    @classmethod
    def from_numpy_array(cls, array_like: npt.ArrayLike) -> Self:
        """Create a new buffer holding a copy of a Numpy array-like object

        Parameters
        ----------
        array_like
            Object that can be coerced into a 1-dim Numpy array

        Returns
        -------
            New buffer representing `array_like`
        """
        return cls.from_array_like(np.array(array_like))

    def as_numpy_array(self) -> npt.NDArray[Any]:
        """Returns the buffer as a NumPy array.

        Notes
        -----
        Might have to copy data, consider using `.as_array_like()` instead.

        Returns
        -------
            NumPy array of this buffer (might be a data copy)
        """
        return np.asanyarray(self._data)


class MutableBuffer(Buffer[T], core.MutableBuffer[T]):
    """A fixed-size linear block of elements held in a writeable NumPy array

    Parameters
    ----------
    array_like
        array-like object that must be 1-dim. Read-only arrays are copied.
    """


# CPU buffer prototype using numpy arrays
buffer_prototype = core.BufferPrototype(buffer=Buffer, mutable_buffer=MutableBuffer)


register_buffer(Buffer, qualname="ndstructure.buffer.cpu.Buffer")
register_mutable_buffer(MutableBuffer, qualname="ndstructure.buffer.cpu.MutableBuffer")
