import itertools
from typing import Any

import numpy as np
import pytest

pytest.importorskip("hypothesis")

import hypothesis.strategies as st
from hypothesis import given

import ndstructure as nds
from ndstructure.core.buffer.cpu import Buffer
from ndstructure.core.common import Index, MemoryOrder, Shape
from ndstructure.core.strides import DefaultStrides
from ndstructure.core.structure import BufferNDStructure
from ndstructure.errors import IndexOutOfBoundsError
from ndstructure.testing import FunctionNDStructure
from ndstructure.testing.strategies import (
    orders,
    out_of_bounds_indices,
    shapes,
    shapes_and_indices,
    shapes_and_offsets,
    structures,
)


@given(data=shapes_and_indices(), order=orders)
def test_index_offset_roundtrip(data: tuple[Shape, Index], order: MemoryOrder) -> None:
    shape, index = data
    strides = DefaultStrides.for_shape(shape, order)
    offset = strides.offset(index)
    assert 0 <= offset < strides.linear_size
    assert strides.index(offset) == index


@given(data=shapes_and_offsets(), order=orders)
def test_offset_index_roundtrip(data: tuple[Shape, int], order: MemoryOrder) -> None:
    shape, offset = data
    strides = DefaultStrides.for_shape(shape, order)
    index = strides.index(offset)
    assert all(0 <= i < n for i, n in zip(index, shape, strict=True))
    assert strides.offset(index) == offset


@given(shape=shapes, order=orders)
def test_offsets_agree_with_numpy(shape: Shape, order: MemoryOrder) -> None:
    strides = DefaultStrides.for_shape(shape, order)
    expected = np.arange(strides.linear_size).reshape(shape, order=order)
    for index in strides.indices():
        assert strides.offset(index) == expected[index]


@given(shape=shapes, order=orders)
def test_indices_cover_shape_in_linear_order(shape: Shape, order: MemoryOrder) -> None:
    strides = DefaultStrides.for_shape(shape, order)
    indices = list(strides.indices())
    assert len(indices) == strides.linear_size == int(np.prod(shape))
    assert set(indices) == set(itertools.product(*(range(n) for n in shape)))
    assert [strides.offset(index) for index in indices] == list(range(strides.linear_size))


@given(shape=shapes)
def test_strides_shape_invariants(shape: Shape) -> None:
    strides = DefaultStrides.for_shape(shape)
    assert strides.strides[0] == 1
    assert strides.linear_size == int(np.prod(shape))
    assert len(strides.strides) == len(shape) + 1
    assert DefaultStrides.for_shape(list(shape)) is strides


@given(data=st.data(), shape=shapes)
def test_out_of_bounds_index_rejected(data: st.DataObject, shape: Shape) -> None:
    index = data.draw(out_of_bounds_indices(shape))
    s = nds.nd_structure(shape, lambda index: 0)
    with pytest.raises(IndexOutOfBoundsError):
        s.get(index)
    m = nds.mutable_nd_structure(shape, lambda index: 0)
    with pytest.raises(IndexOutOfBoundsError):
        m.set(index, 1)
    assert all(value == 0 for value in m.buffer)


@given(s=structures())
def test_get_reads_buffer_at_offset(s: BufferNDStructure[Any]) -> None:
    data = s.buffer.as_numpy_array()
    for index, value in s.elements():
        assert value == data[s.strides.offset(index)]
        assert s.get(index) == value


@given(s=structures(), order=orders)
def test_equality_independent_of_order(s: BufferNDStructure[Any], order: MemoryOrder) -> None:
    copy = nds.nd_structure(s.shape, s.get, Buffer.factory(s.buffer.dtype), order=order)
    assert copy == s
    assert s == copy
    assert hash(copy) == hash(s)


@given(s=structures())
def test_map_paths_agree(s: BufferNDStructure[Any]) -> None:
    opaque = FunctionNDStructure(s.shape, s.get)
    fast = nds.map_to_buffer(s, repr)
    general = nds.map_to_buffer(opaque, repr)
    assert fast.strides is s.strides
    assert opaque.calls == s.strides.linear_size
    assert fast == general
    for index, value in s.elements():
        assert fast.get(index) == repr(value)


@given(s=structures())
def test_map_in_place_writes_existing_buffer(s: BufferNDStructure[Any]) -> None:
    m = nds.mutable_nd_structure(s.strides, s.get)
    buffer = m.buffer
    m.map_in_place(lambda index, value: (index, value))
    assert m.buffer is buffer
    for index, value in s.elements():
        assert m.get(index) == (index, value)


@given(s=structures())
def test_combine_with_self(s: BufferNDStructure[Any]) -> None:
    c = nds.combine(s, s, lambda x, y: (x, y), Buffer.boxing)
    assert c.strides is s.strides
    for index, value in s.elements():
        assert c.get(index) == (value, value)
