"""Static checker for GUC lifetime annotations on global variables."""

__version__ = "0.1.0"
