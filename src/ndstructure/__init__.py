from ndstructure._version import version as __version__
from ndstructure.buffer import default_buffer_prototype
from ndstructure.core.config import config
from ndstructure.core.creation import (
    combine,
    inline_mutable_nd_structure,
    inline_nd_structure,
    map_to_buffer,
    mutable_nd_structure,
    nd_structure,
)
from ndstructure.core.strides import DefaultStrides, Strides, default_strides
from ndstructure.core.structure import (
    BufferNDStructure,
    MutableBufferNDStructure,
    MutableNDStructure,
    NDBuffer,
    NDStructure,
)
from ndstructure.errors import (
    IndexOutOfBoundsError,
    ShapeMismatchError,
    SizeMismatchError,
)


def print_debug_info() -> None:
    """
    Print version info for use in bug reports.
    """
    import platform
    from importlib.metadata import version

    def print_packages(packages: list[str]) -> None:
        not_installed = []
        for package in packages:
            try:
                print(f"{package}: {version(package)}")
            except ModuleNotFoundError:
                not_installed.append(package)
        if not_installed:
            print("\n**Not Installed:**")
            for package in not_installed:
                print(package)

    required = [
        "numpy",
        "donfig",
    ]
    optional = [
        "hypothesis",
        "pytest",
    ]

    print(f"platform: {platform.platform()}")
    print(f"python: {platform.python_version()}")
    print(f"ndstructure: {__version__}\n")
    print("**Required dependencies:**")
    print_packages(required)
    print("\n**Optional dependencies:**")
    print_packages(optional)


__all__ = [
    "BufferNDStructure",
    "DefaultStrides",
    "IndexOutOfBoundsError",
    "MutableBufferNDStructure",
    "MutableNDStructure",
    "NDBuffer",
    "NDStructure",
    "ShapeMismatchError",
    "SizeMismatchError",
    "Strides",
    "__version__",
    "combine",
    "config",
    "default_buffer_prototype",
    "default_strides",
    "inline_mutable_nd_structure",
    "inline_nd_structure",
    "map_to_buffer",
    "mutable_nd_structure",
    "nd_structure",
    "print_debug_info",
]
