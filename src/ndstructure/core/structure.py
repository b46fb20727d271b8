from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ndstructure.core.buffer import Buffer, MutableBuffer
from ndstructure.errors import SizeMismatchError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from ndstructure.core.buffer import BufferFactory
    from ndstructure.core.common import Index, Shape
    from ndstructure.core.strides import Strides

T = TypeVar("T")
R = TypeVar("R")


class NDStructure(ABC, Generic[T]):
    """A read-only N-dimensional structure addressed by multi-indices.

    Consumers should rely on this interface only; a structure is not required to be
    backed by a buffer.
    """

    @property
    @abstractmethod
    def shape(self) -> Shape: ...

    @property
    def dimension(self) -> int:
        return len(self.shape)

    @abstractmethod
    def get(self, index: Any) -> T:
        """Return the element at ``index``.

        Raises
        ------
        IndexOutOfBoundsError
            If ``index`` has the wrong number of dimensions or a component outside the shape.
        """

    def __getitem__(self, index: Any) -> T:
        return self.get(index)

    @abstractmethod
    def elements(self) -> Iterator[tuple[Index, T]]:
        """Iterate over ``(index, value)`` pairs, in ascending linear order."""

    def map_to_buffer(
        self, transform: Callable[[T], R], factory: BufferFactory[R] | None = None
    ) -> BufferNDStructure[R]:
        """See `ndstructure.core.creation.map_to_buffer`."""
        from ndstructure.core.creation import map_to_buffer

        return map_to_buffer(self, transform, factory)

    def combine(
        self,
        other: NDStructure[T],
        op: Callable[[T, T], T],
        factory: BufferFactory[T] | None = None,
    ) -> BufferNDStructure[T]:
        """See `ndstructure.core.creation.combine`."""
        from ndstructure.core.creation import combine

        return combine(self, other, op, factory)

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, NDStructure):
            return NotImplemented
        if tuple(self.shape) != tuple(other.shape):
            return False
        return all(value == other.get(index) for index, value in self.elements())

    __hash__ = None  # type: ignore[assignment]


class MutableNDStructure(NDStructure[T]):
    """An N-dimensional structure whose elements can be replaced."""

    @abstractmethod
    def set(self, index: Any, value: T) -> None:
        """Replace the element at ``index``."""

    def __setitem__(self, index: Any, value: T) -> None:
        self.set(index, value)

    def map_in_place(self, action: Callable[[Index, T], T]) -> None:
        """Replace every element with ``action(index, old_value)``.

        Elements are visited in `elements` order. Buffer-backed structures are updated
        in their existing buffer.
        """
        # each write targets the element that was just read
        for index, old_value in self.elements():
            self.set(index, action(index, old_value))


class NDBuffer(NDStructure[T]):
    """An N-dimensional structure stored in a linear buffer addressed through strides."""

    @property
    @abstractmethod
    def buffer(self) -> Buffer[T]: ...

    @property
    @abstractmethod
    def strides(self) -> Strides: ...

    @property
    def shape(self) -> Shape:
        return self.strides.shape

    def get(self, index: Any) -> T:
        return self.buffer[self.strides.offset(index)]

    def elements(self) -> Iterator[tuple[Index, T]]:
        for index in self.strides.indices():
            yield index, self.get(index)


class BufferNDStructure(NDBuffer[T]):
    """A structure holding one `Strides` instance and one `Buffer` of matching size

    Parameters
    ----------
    strides
        The index mapping. Strides are immutable and may be shared between structures.
    buffer
        The elements, in the linear order defined by ``strides``.

    Raises
    ------
    SizeMismatchError
        If the buffer does not hold exactly ``strides.linear_size`` elements.
    """

    def __init__(self, strides: Strides, buffer: Buffer[T]) -> None:
        if strides.linear_size != len(buffer):
            raise SizeMismatchError(strides.linear_size, len(buffer))
        self._strides = strides
        self._buffer = buffer

    @property
    def buffer(self) -> Buffer[T]:
        return self._buffer

    @property
    def strides(self) -> Strides:
        return self._strides

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if isinstance(other, NDBuffer) and self.strides == other.strides:
            return self.buffer == other.buffer
        return super().__eq__(other)

    def __hash__(self) -> int:
        if isinstance(self._buffer, MutableBuffer):
            raise TypeError(f"unhashable type: '{self.__class__.__name__}' with a mutable buffer")
        # hash in logical order, equal structures may use different strides
        return hash((self.shape, tuple(value for _, value in self.elements())))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} shape={self.shape} {self._buffer!r}>"


class MutableBufferNDStructure(BufferNDStructure[T], MutableNDStructure[T]):
    """A buffer-backed structure that supports element assignment

    Raises
    ------
    TypeError
        If ``buffer`` is not a `MutableBuffer`.
    """

    def __init__(self, strides: Strides, buffer: MutableBuffer[T]) -> None:
        if not isinstance(buffer, MutableBuffer):
            raise TypeError(f"Expected a MutableBuffer. Got {type(buffer)} instead.")
        super().__init__(strides, buffer)

    @property
    def buffer(self) -> MutableBuffer[T]:
        return self._buffer  # type: ignore[return-value]

    def set(self, index: Any, value: T) -> None:
        self.buffer[self.strides.offset(index)] = value

    __hash__ = None  # type: ignore[assignment]
