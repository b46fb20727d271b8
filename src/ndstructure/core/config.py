"""
The config module is responsible for managing the configuration of ndstructure and is based on the
Donfig python library. For selecting custom buffer implementations, first register them in the
registry and then select them in the config.

Example:
    A custom read-only buffer ``your.module.ListBuffer`` requires the value of ``buffer`` to be
    ``your.module.ListBuffer``. Donfig can be configured programmatically, by environment
    variables, or from YAML files in standard locations.

    ```python
    from your.module import ListBuffer
    from ndstructure.registry import register_buffer
    from ndstructure.core.config import config

    register_buffer(ListBuffer)
    config.set({"buffer": "your.module.ListBuffer"})
    ```

    Instead of setting the value programmatically with ``config.set``, you can also set the value
    with an environment variable. The environment variable ``NDSTRUCTURE_STRIDES__ORDER`` can be
    set to ``F``. The double underscore ``__`` is used to indicate nested access.

    ```bash
    export NDSTRUCTURE_STRIDES__ORDER="F"
    ```

For more information, see the Donfig documentation at https://github.com/pytroll/donfig.
"""

from __future__ import annotations

from typing import Any, Literal, cast

from donfig import Config as DConfig


class BadConfigError(ValueError):
    _msg = "bad Config: %r"


class Config(DConfig):  # type: ignore[misc]
    """The Config will collect configuration from config files and environment variables

    Example environment variables:
    Grabs environment variables of the form "NDSTRUCTURE_FOO__BAR_BAZ=123" and
    turns these into config variables of the form ``{"foo": {"bar-baz": 123}}``
    It transforms the key and value in the following way:

    -  Lower-cases the key text
    -  Treats ``__`` (double-underscore) as nested access
    -  Calls ``ast.literal_eval`` on the value

    """

    def reset(self) -> None:
        self.clear()
        self.refresh()


# The default configuration for ndstructure
config = Config(
    "ndstructure",
    defaults=[
        {
            "strides": {"order": "C"},
            "buffer": "ndstructure.buffer.cpu.Buffer",
            "mutable_buffer": "ndstructure.buffer.cpu.MutableBuffer",
            # element types understood by ``Buffer.auto`` and the dtype used to store them
            "auto_dtypes": {
                "float": "float64",
                "int": "int64",
                "bool": "bool",
                "complex": "complex128",
            },
        }
    ],
)


def parse_order(data: Any) -> Literal["C", "F"]:
    if data in ("C", "F"):
        return cast("Literal['C', 'F']", data)
    msg = f"Expected one of ('C', 'F'), got {data} instead."
    raise ValueError(msg)


def default_order() -> Literal["C", "F"]:
    """Return the memory order used when a caller does not ask for one."""
    return parse_order(config.get("strides.order", "C"))
