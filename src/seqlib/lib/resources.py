"""
Package resources and optional dependency management.
"""
from functools import cached_property, lru_cache
from importlib import import_module
from importlib.metadata import metadata as load_metadata, PackageNotFoundError
from pathlib import Path
from typing import Callable


# Classes --------------------------------------------------------------------------------------------------------------
class Resources:
    """
    Manages package-wide resources such as metadata and optional dependencies.

    Attributes:
        package (str): The package name.
    """
    def __init__(self) -> None:
        self.package = Path(__file__).parent.parent.name

    @cached_property
    def version(self) -> str:
        """Returns the installed package version, or '0+unknown' when running from a source tree."""
        try: return load_metadata(self.package)['Version']
        except PackageNotFoundError: return '0+unknown'

    @staticmethod
    @lru_cache(maxsize=None)
    def has_module(module_name: str) -> bool:
        """Checks if a python package is installed."""
        try:
            import_module(module_name)
            return True
        except ImportError: return False


# Decorators -----------------------------------------------------------------------------------------------------------
def jit(signature_or_function=None, **options) -> Callable:
    """
    Conditional Numba JIT decorator.

    If 'numba' is installed (checked via RESOURCES), this applies `numba.jit`
    with the provided arguments. Otherwise, it returns the original function unmodified,
    ignoring any compilation options.

    Examples:
        >>> @jit  # Bare usage
        ... def func(): ...

        >>> @jit(nopython=True, cache=True)  # Configured usage
        ... def func(): ...
    """
    # 1. Fallback: Numba not installed
    if not RESOURCES.has_module('numba'):
        if callable(signature_or_function): return signature_or_function  # Handle bare @jit
        def passthrough(func: Callable) -> Callable: return func  # Handle @jit(...)
        return passthrough
    # 2. Apply Numba
    from numba import jit as real_jit
    if callable(signature_or_function): return real_jit(signature_or_function)  # Handle bare @jit
    return real_jit(signature_or_function, **options)  # Handle @jit(...)


# Constants ------------------------------------------------------------------------------------------------------------
RESOURCES = Resources()
