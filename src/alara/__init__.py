"""
Alara - visual editing for running web applications.

Edits made on a rendered element are written back into the source files the
element was compiled from.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
