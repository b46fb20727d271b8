__all__ = [
    "BaseNDStructureError",
    "IndexOutOfBoundsError",
    "ShapeMismatchError",
    "SizeMismatchError",
]


class BaseNDStructureError(ValueError):
    """
    Base error which all ndstructure value errors are sub-classed from.
    """

    _msg: str = "{}"

    def __init__(self, *args: object) -> None:
        """
        If a single argument is passed, treat it as a pre-formatted message.

        If multiple arguments are passed, they are used as arguments for a template string class
        variable.
        """
        if len(args) == 1:
            super().__init__(args[0])
        else:
            super().__init__(self._msg.format(*args))


class SizeMismatchError(BaseNDStructureError):
    """
    Raised when a buffer does not hold exactly as many elements as the strides address.
    """

    _msg = "Expected buffer size of {}, but found {}"


class ShapeMismatchError(BaseNDStructureError):
    """
    Raised when two structures combined element-wise have different shapes.
    """

    _msg = "Shape mismatch in structure combination: {} != {}"


class IndexOutOfBoundsError(IndexError):
    """
    Raised when an index does not address an element of a buffer or a structure.

    This covers negative components, components past the end of their dimension,
    and multi-indices with the wrong number of dimensions.
    """

