"""ライフタイム注釈検査の指摘情報モデル。"""

from dataclasses import dataclass
from typing import Optional
import os

MISSING_ANNOTATION_MESSAGE = "is missing a lifetime annotation"


@dataclass
class SourceLocation:
    """ソースコードの位置情報。"""
    file_path: str
    line: int
    column: Optional[int] = None

    def __post_init__(self):
        self.file_path = os.path.normpath(self.file_path)

    def __str__(self) -> str:
        if self.column:
            return f"{self.file_path}:{self.line}:{self.column}"
        return f"{self.file_path}:{self.line}"


@dataclass
class Finding:
    """注釈のないグローバル変数宣言の指摘。"""
    location: SourceLocation
    variable: str
    message: str = MISSING_ANNOTATION_MESSAGE

    @classmethod
    def from_cursor(cls, cursor) -> "Finding":
        """変数宣言カーソルからFindingを生成する。

        Args:
            cursor: VAR_DECLカーソル

        Returns:
            Findingインスタンス
        """
        location = cursor.location
        file_path = location.file.name if location.file else ""

        return cls(
            location=SourceLocation(
                file_path=file_path,
                line=location.line,
                column=location.column
            ),
            variable=cursor.spelling
        )

    def __str__(self) -> str:
        return f"{self.location}: {self.variable} {self.message}"
