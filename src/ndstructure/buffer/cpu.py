from ndstructure.core.buffer.cpu import (
    Buffer,
    MutableBuffer,
    buffer_prototype,
)

__all__ = [
    "Buffer",
    "MutableBuffer",
    "buffer_prototype",
]
