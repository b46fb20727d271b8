from ndstructure.core.buffer.core import (
    ArrayLike,
    Buffer,
    BufferFactory,
    BufferPrototype,
    MutableBuffer,
    check_storable,
    default_buffer_prototype,
    infer_dtype,
    is_storable,
    resolve_element_dtype,
)

__all__ = [
    "ArrayLike",
    "Buffer",
    "BufferFactory",
    "BufferPrototype",
    "MutableBuffer",
    "check_storable",
    "default_buffer_prototype",
    "infer_dtype",
    "is_storable",
    "resolve_element_dtype",
]
