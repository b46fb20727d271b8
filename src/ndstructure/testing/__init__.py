import importlib.util
import warnings

if importlib.util.find_spec("hypothesis") is None:
    warnings.warn("hypothesis not installed, ndstructure.testing.strategies unavailable", stacklevel=2)

from ndstructure.testing.structure import FunctionNDStructure

__all__ = ["FunctionNDStructure"]
