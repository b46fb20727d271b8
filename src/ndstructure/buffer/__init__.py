"""
Implementations of the ndstructure Buffer interface.

See Also
========
ndstructure.abc.buffer: Abstract base class for the ndstructure Buffer interface.
"""

from ndstructure.buffer import cpu
from ndstructure.core.buffer import default_buffer_prototype

__all__ = ["cpu", "default_buffer_prototype"]
