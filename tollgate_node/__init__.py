"""
Tollgate Node package initializer

Keep this module lightweight: importing the package must not load the
config layer or the runtime.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
