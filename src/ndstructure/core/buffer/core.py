from __future__ import annotations

import functools
import typing
from abc import ABC, abstractmethod
from typing import (
    TYPE_CHECKING,
    Any,
    Generic,
    NamedTuple,
    Protocol,
    TypeVar,
    cast,
    runtime_checkable,
)

import numpy as np
import numpy.typing as npt

from ndstructure.core.common import is_integer
from ndstructure.core.config import config
from ndstructure.errors import IndexOutOfBoundsError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from typing import Self

# Everything here is imported into ``ndstructure.core.buffer`` namespace.
__all__: list[str] = []

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


@runtime_checkable
class ArrayLike(Protocol):
    """Protocol for the array-like type that underlie Buffer"""

    @property
    def dtype(self) -> np.dtype[Any]: ...

    @property
    def ndim(self) -> int: ...

    @property
    def size(self) -> int: ...

    def __getitem__(self, key: Any) -> Any: ...

    def __setitem__(self, key: Any, value: Any) -> None: ...


class BufferFactory(Protocol[T_co]):
    """Protocol for callables that allocate a buffer of ``size`` elements.

    The element at linear position ``i`` is ``initializer(i)``; positions are
    visited in ascending order.
    """

    def __call__(self, size: int, initializer: Callable[[int], Any]) -> Buffer[T_co]: ...


# dtype kinds stored in typed arrays: bool, signed, unsigned, float, complex
_SPECIALIZED_KINDS = "biufc"


def _specialized_or_boxed(scalar_type: type[np.generic]) -> np.dtype[Any]:
    try:
        dtype = np.dtype(scalar_type)
    except TypeError:
        # abstract scalar types such as np.floating
        return np.dtype(object)
    return dtype if dtype.kind in _SPECIALIZED_KINDS else np.dtype(object)


def resolve_element_dtype(element_type: Any) -> np.dtype[Any]:
    """Return the dtype used to store elements of ``element_type``.

    Numpy dtypes are used as is. Numpy scalar types of a fixed size map to their dtype and
    Python builtins are looked up in the ``auto_dtypes`` config table, either as types or
    by name. Anything else is stored boxed (``object`` dtype).
    """
    if isinstance(element_type, np.dtype):
        return element_type
    auto_dtypes = config.get("auto_dtypes", {})
    if isinstance(element_type, type):
        if issubclass(element_type, np.generic):
            return _specialized_or_boxed(element_type)
        if element_type.__module__ == "builtins" and element_type.__name__ in auto_dtypes:
            return np.dtype(auto_dtypes[element_type.__name__])
        return np.dtype(object)
    if isinstance(element_type, str):
        if element_type in auto_dtypes:
            return np.dtype(auto_dtypes[element_type])
        scalar_type = getattr(np, element_type.removeprefix("numpy.").removeprefix("np."), None)
        if isinstance(scalar_type, type) and issubclass(scalar_type, np.generic):
            return _specialized_or_boxed(scalar_type)
    return np.dtype(object)


def is_storable(value: Any, dtype: np.dtype[Any]) -> bool:
    """True if ``value`` can be stored in an array of ``dtype`` without loss.

    Python scalars are checked by value, so ``3`` fits ``uint8`` while ``0.5`` and
    ``300`` don't. NumPy scalars must cast within the same kind. Boxed storage holds
    anything.
    """
    if dtype.hasobject:
        return True
    if isinstance(value, np.generic):
        return bool(np.can_cast(value.dtype, dtype, "same_kind"))
    if not isinstance(value, (bool, int, float, complex)):
        return False
    if isinstance(value, int) and dtype.kind in "iu":
        info = np.iinfo(dtype)
        return bool(info.min <= value <= info.max)
    return np.result_type(value, dtype).kind == dtype.kind


def check_storable(value: T, dtype: np.dtype[Any]) -> T:
    """Return ``value`` if it fits ``dtype``, see `is_storable`. Raise TypeError otherwise."""
    if not is_storable(value, dtype):
        raise TypeError(f"Can't store {value!r} in a buffer of dtype {dtype} without loss")
    return value


def infer_dtype(func: Callable[..., Any]) -> np.dtype[Any]:
    """Return the storage dtype for the values produced by ``func``.

    The declared return annotation of ``func`` decides; callables without one (lambdas,
    for example) produce boxed storage.
    """
    try:
        hints = typing.get_type_hints(func)
    except NameError:
        # some parameter annotation is only importable for type checkers
        return resolve_element_dtype(getattr(func, "__annotations__", {}).get("return"))
    except TypeError:
        # callables that carry no annotations at all, such as partials
        return np.dtype(object)
    return resolve_element_dtype(hints.get("return"))


class Buffer(ABC, Generic[T]):
    """A fixed-size linear block of elements

    We use Buffer throughout ndstructure to hold the elements of a structure in
    linear order. Each element is addressed by an integer in ``[0, size)``.

    A Buffer is backed by an underlying 1-dim array-like instance. Elements of a
    primitive kind (floats, integers, booleans, complex numbers) are stored in a
    typed array so that no per-element Python object is kept alive. Any other
    element is stored boxed, in an array of dtype ``object``. Both representations
    behave identically through this interface.

    Notes
    -----
    The size of a buffer is fixed at construction. This class is read-only; see
    `MutableBuffer` for the variant that supports item assignment.

    Parameters
    ----------
    array_like
        array-like object that must be 1-dim.
    """

    _writeable: bool = False

    def __init__(self, array_like: ArrayLike) -> None:
        if array_like.ndim != 1:
            raise ValueError("array_like: only 1-dim allowed")
        self._data = array_like

    @classmethod
    @abstractmethod
    def create(
        cls,
        size: int,
        initializer: Callable[[int], T],
        dtype: npt.DTypeLike | None = None,
    ) -> Self:
        """Create a new buffer filled by calling ``initializer`` for every linear index

        Parameters
        ----------
        size
            The number of elements of the new buffer.
        initializer
            Called once per linear index, in ascending order, to produce the element
            stored there.
        dtype
            The datatype of the underlying array. ``None`` or ``object`` selects the
            boxed representation.

        Returns
        -------
            New buffer holding ``size`` elements
        """
        if cls is Buffer:
            raise NotImplementedError("Cannot call abstract method on the abstract class 'Buffer'")
        return cls(
            cast("ArrayLike", None)
        )  # This line will never be reached, but it satisfies the type checker

    @classmethod
    def boxing(cls, size: int, initializer: Callable[[int], T]) -> Self:
        """Create a new buffer that stores its elements as Python objects"""
        return cls.create(size, initializer, dtype=object)

    @classmethod
    def auto(
        cls, size: int, initializer: Callable[[int], T], element_type: Any | None = None
    ) -> Self:
        """Create a new buffer using the most compact representation for its elements

        Parameters
        ----------
        size
            The number of elements of the new buffer.
        initializer
            Called once per linear index, in ascending order.
        element_type
            The type of the elements. When omitted, the return annotation of
            ``initializer`` is used instead.

        Returns
        -------
            New buffer, typed when the element type has a specialized
            representation and boxed otherwise
        """
        if element_type is None:
            dtype = infer_dtype(initializer)
        else:
            dtype = resolve_element_dtype(element_type)
        return cls.create(size, initializer, dtype=dtype)

    @classmethod
    def factory(cls, dtype: npt.DTypeLike) -> BufferFactory[Any]:
        """Return a buffer factory that always creates buffers of ``dtype``"""
        return cast("BufferFactory[Any]", functools.partial(cls.create, dtype=dtype))

    @classmethod
    def from_array_like(cls, array_like: ArrayLike) -> Self:
        """Create a new buffer of an array-like object

        Parameters
        ----------
        array_like
            array-like object that must be 1-dim.

        Returns
        -------
            New buffer representing `array_like`
        """
        return cls(array_like)

    @classmethod
    @abstractmethod
    def from_numpy_array(cls, array_like: npt.ArrayLike) -> Self:
        """Create a new buffer of Numpy array-like object

        Parameters
        ----------
        array_like
            Object that can be coerced into a 1-dim Numpy array

        Returns
        -------
            New buffer representing `array_like`
        """
        if cls is Buffer:
            raise NotImplementedError("Cannot call abstract method on the abstract class 'Buffer'")
        return cls(
            cast("ArrayLike", None)
        )  # This line will never be reached, but it satisfies the type checker

    def as_array_like(self) -> ArrayLike:
        """Returns the underlying array of this buffer

        This will never copy data.

        Returns
        -------
            The underlying 1d array such as a NumPy array.
        """
        return self._data

    @abstractmethod
    def as_numpy_array(self) -> npt.NDArray[Any]:
        """Returns the buffer as a NumPy array.

        Notes
        -----
        Might have to copy data, consider using `.as_array_like()` instead.

        Returns
        -------
            NumPy array of this buffer (might be a data copy)
        """
        ...

    @property
    def dtype(self) -> np.dtype[Any]:
        return self._data.dtype

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def is_boxed(self) -> bool:
        """True if elements are stored as Python objects rather than in a typed array"""
        return bool(self.dtype.hasobject)

    def _check_index(self, index: Any) -> int:
        if not is_integer(index):
            raise TypeError(
                f"Buffer index has incorrect type (expected int, got {index.__class__.__name__})"
            )
        index = int(index)
        if index < 0 or index >= self.size:
            raise IndexOutOfBoundsError(f"Index {index} out of buffer bounds: [0, {self.size})")
        return index

    def _element(self, index: int) -> T:
        value = self._data[index]
        if self.is_boxed:
            return cast("T", value)
        # typed storage yields Python scalars, the same as boxed storage
        return cast("T", value.item())

    def get(self, index: int) -> T:
        return self._element(self._check_index(index))

    def __getitem__(self, index: int) -> T:
        return self.get(index)

    def __len__(self) -> int:
        return self.size

    def __iter__(self) -> Iterator[T]:
        for i in range(self.size):
            yield self._element(i)

    def to_list(self) -> list[Any]:
        """Returns the elements as a list of Python objects (data copy)"""
        return cast("list[Any]", self.as_numpy_array().tolist())

    def __eq__(self, other: object) -> bool:
        if self is other:
            return True
        if not isinstance(other, Buffer) or len(self) != len(other):
            return False
        if self.is_boxed or other.is_boxed:
            return self.to_list() == other.to_list()
        return bool(np.array_equal(self.as_numpy_array(), other.as_numpy_array()))

    def __hash__(self) -> int:
        # hash the Python values so that equal typed and boxed buffers hash alike
        return hash(tuple(self.to_list()))

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} size={self.size} dtype={self.dtype} {self._data!r}>"


class MutableBuffer(Buffer[T]):
    """A fixed-size linear block of elements that supports item assignment

    Parameters
    ----------
    array_like
        array-like object that must be 1-dim and writeable.
    """

    _writeable = True

    def set(self, index: int, value: T) -> None:
        """Replace the element at ``index``.

        Raises
        ------
        TypeError
            If a typed buffer can't hold ``value`` without loss.
        """
        index = self._check_index(index)
        self._data[index] = check_storable(value, self.dtype)

    def __setitem__(self, index: int, value: T) -> None:
        self.set(index, value)

    # the content can change, so a mutable buffer can't be used as a key
    __hash__ = None  # type: ignore[assignment]


class BufferPrototype(NamedTuple):
    """Prototype of the Buffer and MutableBuffer class

    The protocol must be pickable.

    Attributes
    ----------
    buffer
        The Buffer class to use when ndstructure needs to create a new read-only Buffer.
    mutable_buffer
        The MutableBuffer class to use when ndstructure needs to create a new MutableBuffer.
    """

    buffer: type[Buffer[Any]]
    mutable_buffer: type[MutableBuffer[Any]]


# The default buffer prototype used throughout the ndstructure codebase.
def default_buffer_prototype() -> BufferPrototype:
    from ndstructure.registry import (
        get_buffer_class,
        get_mutable_buffer_class,
    )

    return BufferPrototype(buffer=get_buffer_class(), mutable_buffer=get_mutable_buffer_class())
