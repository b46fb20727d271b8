from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any, TypeVar

import numpy as np

from ndstructure.core.buffer import (
    default_buffer_prototype,
    infer_dtype,
    is_storable,
    resolve_element_dtype,
)
from ndstructure.core.strides import DefaultStrides, Strides
from ndstructure.core.structure import (
    BufferNDStructure,
    MutableBufferNDStructure,
    NDBuffer,
    NDStructure,
)
from ndstructure.errors import ShapeMismatchError

if TYPE_CHECKING:
    from collections.abc import Callable

    from ndstructure.core.buffer import Buffer, BufferFactory
    from ndstructure.core.common import Index, MemoryOrder, ShapeLike

__all__ = [
    "combine",
    "inline_mutable_nd_structure",
    "inline_nd_structure",
    "map_to_buffer",
    "mutable_nd_structure",
    "nd_structure",
]

logger = getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def _resolve_strides(shape: ShapeLike | Strides, order: MemoryOrder | None) -> Strides:
    if isinstance(shape, Strides):
        if order is not None:
            raise ValueError("order can't be specified together with existing strides")
        return shape
    return DefaultStrides.for_shape(shape, order)


def _fill_buffer(
    strides: Strides, factory: BufferFactory[T], initializer: Callable[[Index], T]
) -> Buffer[T]:
    return factory(strides.linear_size, lambda i: initializer(strides.index(i)))


def nd_structure(
    shape: ShapeLike | Strides,
    initializer: Callable[[Index], T],
    factory: BufferFactory[T] | None = None,
    *,
    order: MemoryOrder | None = None,
) -> BufferNDStructure[T]:
    """Create a structure by evaluating ``initializer`` at every multi-index

    Parameters
    ----------
    shape
        The shape of the structure, or existing strides to reuse.
    initializer
        Called once per multi-index, in ascending linear order.
    factory
        Allocates the buffer. Defaults to boxed storage of the configured buffer class.
    order
        Memory order of new strides. Defaults to the ``strides.order`` config value.

    Returns
    -------
    BufferNDStructure

    Raises
    ------
    SizeMismatchError
        If ``factory`` returns a buffer whose size differs from the number of elements.
    """
    strides = _resolve_strides(shape, order)
    if factory is None:
        factory = default_buffer_prototype().buffer.boxing
    return BufferNDStructure(strides, _fill_buffer(strides, factory, initializer))


def mutable_nd_structure(
    shape: ShapeLike | Strides,
    initializer: Callable[[Index], T],
    factory: BufferFactory[T] | None = None,
    *,
    order: MemoryOrder | None = None,
) -> MutableBufferNDStructure[T]:
    """Create a mutable structure by evaluating ``initializer`` at every multi-index

    Same as `nd_structure`, except that ``factory`` must produce a `MutableBuffer`.
    It defaults to boxed storage of the configured mutable buffer class.
    """
    strides = _resolve_strides(shape, order)
    if factory is None:
        factory = default_buffer_prototype().mutable_buffer.boxing
    buffer = _fill_buffer(strides, factory, initializer)
    return MutableBufferNDStructure(strides, buffer)  # type: ignore[arg-type]


def inline_nd_structure(
    shape: ShapeLike | Strides,
    initializer: Callable[[Index], T],
    *,
    element_type: Any | None = None,
    order: MemoryOrder | None = None,
) -> BufferNDStructure[T]:
    """Create a structure using the most compact storage for its elements

    The storage is chosen from ``element_type`` or, if omitted, from the return
    annotation of ``initializer``. ``float``, ``int``, ``bool``, ``complex`` and numpy
    scalar types get a typed buffer; anything else is stored boxed.

    Examples
    --------
    >>> def initializer(index: tuple[int, ...]) -> float:
    ...     return index[0] * 10.0 + index[1]
    >>> inline_nd_structure((2, 2), initializer).buffer.dtype
    dtype('float64')
    """
    dtype = infer_dtype(initializer) if element_type is None else resolve_element_dtype(element_type)
    factory = default_buffer_prototype().buffer.factory(dtype)
    return nd_structure(shape, initializer, factory, order=order)


def inline_mutable_nd_structure(
    shape: ShapeLike | Strides,
    initializer: Callable[[Index], T],
    *,
    element_type: Any | None = None,
    order: MemoryOrder | None = None,
) -> MutableBufferNDStructure[T]:
    """The same as `inline_nd_structure`, but mutable"""
    dtype = infer_dtype(initializer) if element_type is None else resolve_element_dtype(element_type)
    factory = default_buffer_prototype().mutable_buffer.factory(dtype)
    return mutable_nd_structure(shape, initializer, factory, order=order)


def map_to_buffer(
    structure: NDStructure[T],
    transform: Callable[[T], R],
    factory: BufferFactory[R] | None = None,
) -> BufferNDStructure[R]:
    """Create a new structure of the same shape holding ``transform(value)`` for every element

    Buffer-backed structures are mapped directly over their buffer and the result
    shares their strides. Any other structure is read through its multi-index
    interface with default strides.

    Parameters
    ----------
    structure
        The source structure.
    transform
        Applied once to every element.
    factory
        Allocates the result buffer. Defaults to the storage matching the return
        annotation of ``transform`` (boxed when there is none).

    Returns
    -------
    BufferNDStructure
        A new structure; its buffer is always freshly allocated.
    """
    if factory is None:
        factory = default_buffer_prototype().buffer.factory(infer_dtype(transform))
    if isinstance(structure, NDBuffer):
        logger.debug("Mapping %s over its buffer", type(structure).__name__)
        source = structure.buffer
        return BufferNDStructure(
            structure.strides, factory(len(source), lambda i: transform(source.get(i)))
        )
    logger.debug("Mapping %s through multi-indices", type(structure).__name__)
    strides = DefaultStrides.for_shape(structure.shape)
    return BufferNDStructure(
        strides,
        factory(strides.linear_size, lambda i: transform(structure.get(strides.index(i)))),
    )


def _combined_dtype(
    structure: NDStructure[Any], other: NDStructure[Any], values: list[Any]
) -> np.dtype[Any]:
    boxed = np.dtype(object)
    if not (
        isinstance(structure, NDBuffer)
        and isinstance(other, NDBuffer)
        and not (structure.buffer.is_boxed or other.buffer.is_boxed)
    ):
        return boxed
    # widen the operand dtype to what op actually produced
    dtype = np.result_type(structure.buffer.dtype, other.buffer.dtype)
    for value in values:
        if not isinstance(value, (bool, int, float, complex, np.generic)):
            return boxed
        try:
            dtype = np.result_type(dtype, value)
        except OverflowError:
            return boxed
    if dtype.kind not in "biufc" or not all(is_storable(v, dtype) for v in values):
        return boxed
    return dtype


def combine(
    structure: NDStructure[T],
    other: NDStructure[T],
    op: Callable[[T, T], T],
    factory: BufferFactory[T] | None = None,
) -> BufferNDStructure[T]:
    """Combine two structures of the same shape element by element

    Parameters
    ----------
    structure, other
        The operands. Their shapes must be equal component by component; structures
        with the same number of elements but different shapes are rejected.
    op
        Called with the elements of both operands at each multi-index.
    factory
        Allocates the result buffer. By default the result is typed by the return
        annotation of ``op`` when it has one. Otherwise, when both operands are typed
        buffers, it is typed by the operand dtypes widened to hold every value ``op``
        returned. Anything else is boxed.

    Raises
    ------
    ShapeMismatchError
        If the shapes differ.
    """
    if tuple(structure.shape) != tuple(other.shape):
        raise ShapeMismatchError(tuple(structure.shape), tuple(other.shape))
    if isinstance(structure, NDBuffer):
        strides = structure.strides
    else:
        strides = DefaultStrides.for_shape(structure.shape)

    def initializer(index: Index) -> T:
        return op(structure.get(index), other.get(index))

    if factory is not None:
        return nd_structure(strides, initializer, factory)
    dtype = infer_dtype(op)
    if dtype.hasobject:
        # op is evaluated once per element, the storage follows its results
        values = [initializer(index) for index in strides.indices()]
        dtype = _combined_dtype(structure, other, values)
        factory = default_buffer_prototype().buffer.factory(dtype)
        return BufferNDStructure(strides, factory(strides.linear_size, values.__getitem__))
    return nd_structure(strides, initializer, default_buffer_prototype().buffer.factory(dtype))
