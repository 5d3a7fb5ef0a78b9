"""
Optional dependency management shared across the package.
"""
from functools import lru_cache
from importlib import import_module
from pathlib import Path
from typing import Callable


# Classes --------------------------------------------------------------------------------------------------------------
class Resources:
    """
    Tracks optional dependencies so that accelerated code paths can be switched on lazily.

    Attributes:
        package (str): The package name.
    """
    def __init__(self) -> None:
        self.package = Path(__file__).parent.parent.name

    @property
    def has_numba(self) -> bool:
        """Whether numba is importable in this interpreter."""
        return self.has_module('numba')

    @staticmethod
    @lru_cache(maxsize=None)
    def has_module(module_name: str) -> bool:
        """Checks if a python package is installed."""
        try:
            import_module(module_name)
            return True
        except ImportError: return False


# Decorators -----------------------------------------------------------------------------------------------------------
def jit(func_or_signature=None, **options) -> Callable:
    """
    Compiles a numeric kernel with numba when it is available, and leaves it as plain Python otherwise.

    Options such as ``nopython`` or ``cache`` are only meaningful to numba and are dropped on the
    fallback path, so kernels must stay valid Python in both cases.

    Examples:
        >>> @jit(nopython=True, cache=True)
        ... def count_data(codes): ...
    """
    if RESOURCES.has_numba:
        from numba import jit as numba_jit
        if callable(func_or_signature): return numba_jit(func_or_signature)
        return numba_jit(func_or_signature, **options)
    if callable(func_or_signature): return func_or_signature
    return lambda func: func


# Constants ------------------------------------------------------------------------------------------------------------
RESOURCES = Resources()
