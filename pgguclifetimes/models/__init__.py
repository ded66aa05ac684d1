"""Data models for lifetime annotation checking."""

from .finding import Finding, SourceLocation, MISSING_ANNOTATION_MESSAGE
from .lifetime import LifetimeTag
from .context import AnalysisContext, ConfigTableContext
from .compile_unit import CompileUnit

__all__ = [
    "Finding",
    "SourceLocation",
    "MISSING_ANNOTATION_MESSAGE",
    "LifetimeTag",
    "AnalysisContext",
    "ConfigTableContext",
    "CompileUnit",
]
