"""Build, serialise to XML and encrypt SafeInCloud password database files."""

__version__ = "0.1.0"

__all__ = ["__version__"]