from ndstructure.core.buffer.core import (
    ArrayLike,
    Buffer,
    BufferFactory,
    BufferPrototype,
    MutableBuffer,
)

__all__ = [
    "ArrayLike",
    "Buffer",
    "BufferFactory",
    "BufferPrototype",
    "MutableBuffer",
]
