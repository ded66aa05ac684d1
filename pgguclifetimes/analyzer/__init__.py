"""libclangを使用したCソースコード解析モジュール。"""

from .clang_analyzer import ClangAnalyzer, ClangParseError
from .path_filter import PathFilter, PathResolutionError, resolve_path
from .annotation_checker import AnnotationChecker, find_lifetime, has_global_storage
from .exception_extractor import (
    ExceptionSetExtractor,
    ConfigTableNotFound,
    ConfigTableError,
)

__all__ = [
    "ClangAnalyzer",
    "ClangParseError",
    "PathFilter",
    "PathResolutionError",
    "resolve_path",
    "AnnotationChecker",
    "find_lifetime",
    "has_global_storage",
    "ExceptionSetExtractor",
    "ConfigTableNotFound",
    "ConfigTableError",
]
