"""Image transform and object-storage upload tools."""

__version__ = "0.1.0"
