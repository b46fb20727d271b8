"""
The registry module is responsible for managing implementations of buffers and
collecting them from entrypoints. The implementation used is determined by the config.
"""

from __future__ import annotations

from importlib.metadata import entry_points as get_entry_points
from logging import getLogger
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ndstructure.core.config import BadConfigError, config

if TYPE_CHECKING:
    from importlib.metadata import EntryPoint

    from ndstructure.core.buffer import Buffer, MutableBuffer

__all__ = [
    "Registry",
    "fully_qualified_name",
    "get_buffer_class",
    "get_mutable_buffer_class",
    "register_buffer",
    "register_mutable_buffer",
]

logger = getLogger(__name__)

T = TypeVar("T")


class Registry(dict[str, type[T]], Generic[T]):
    def __init__(self) -> None:
        super().__init__()
        self.lazy_load_list: list[EntryPoint] = []

    def lazy_load(self) -> None:
        for e in self.lazy_load_list:
            logger.debug("Loading buffer class '%s' from entrypoint", e.name)
            self.register(e.load())

        self.lazy_load_list.clear()

    def register(self, cls: type[T], qualname: str | None = None) -> None:
        if qualname is None:
            qualname = fully_qualified_name(cls)
        self[qualname] = cls


__buffer_registry: Registry[Buffer[Any]] = Registry()
__mutable_buffer_registry: Registry[MutableBuffer[Any]] = Registry()


def _collect_entrypoints() -> list[Registry[Any]]:
    """
    Collects buffers and mutable buffers from entrypoints.
    Entry points can either be single items or groups of items.
    Allowed syntax for entry_points.txt is e.g.

        [ndstructure]
        buffer = package:TestBuffer1
        [ndstructure.buffer]
        xyz = package:TestBuffer2
        abc = package:TestBuffer3
        [ndstructure.mutable_buffer]
        xyz = package:TestMutableBuffer
    """
    entry_points = get_entry_points()

    __buffer_registry.lazy_load_list.extend(entry_points.select(group="ndstructure.buffer"))
    __buffer_registry.lazy_load_list.extend(
        entry_points.select(group="ndstructure", name="buffer")
    )
    __mutable_buffer_registry.lazy_load_list.extend(
        entry_points.select(group="ndstructure.mutable_buffer")
    )
    __mutable_buffer_registry.lazy_load_list.extend(
        entry_points.select(group="ndstructure", name="mutable_buffer")
    )
    return [__buffer_registry, __mutable_buffer_registry]


def _reload_config() -> None:
    config.refresh()


def fully_qualified_name(cls: type) -> str:
    module = cls.__module__
    return module + "." + cls.__qualname__


def register_buffer(cls: type[Buffer[Any]], qualname: str | None = None) -> None:
    __buffer_registry.register(cls, qualname)


def register_mutable_buffer(cls: type[MutableBuffer[Any]], qualname: str | None = None) -> None:
    __mutable_buffer_registry.register(cls, qualname)


def get_buffer_class(reload_config: bool = False) -> type[Buffer[Any]]:
    if reload_config:
        _reload_config()
    __buffer_registry.lazy_load()

    path = config.get("buffer")
    buffer_class = __buffer_registry.get(path)
    if buffer_class:
        return buffer_class
    raise BadConfigError(
        f"Buffer class '{path}' not found in registered buffers: {list(__buffer_registry)}."
    )


def get_mutable_buffer_class(reload_config: bool = False) -> type[MutableBuffer[Any]]:
    if reload_config:
        _reload_config()
    __mutable_buffer_registry.lazy_load()
    path = config.get("mutable_buffer")
    mutable_buffer_class = __mutable_buffer_registry.get(path)
    if mutable_buffer_class:
        return mutable_buffer_class
    raise BadConfigError(
        f"MutableBuffer class '{path}' not found in registered buffers: "
        f"{list(__mutable_buffer_registry)}."
    )


_collect_entrypoints()
