from ndstructure.core.strides import Strides
from ndstructure.core.structure import MutableNDStructure, NDBuffer, NDStructure

__all__ = [
    "MutableNDStructure",
    "NDBuffer",
    "NDStructure",
    "Strides",
]
