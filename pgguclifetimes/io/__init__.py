"""コンパイルデータベース入力と結果出力のモジュール。"""

from .compile_database import CompileDatabase, DatabaseLoadError, FileNotInDatabase
from .reporter import Reporter

__all__ = ["CompileDatabase", "DatabaseLoadError", "FileNotInDatabase", "Reporter"]
