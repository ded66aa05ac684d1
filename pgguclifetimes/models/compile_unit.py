"""libclangに渡すコンパイル単位モデル。"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class CompileUnit:
    """1ファイル分のパース入力。

    解析呼び出しごとに生成され、引数リストは呼び出しごとに独立したコピーを持つ。
    """
    file_path: str
    arguments: List[str] = field(default_factory=list)
    directory: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.file_path} ({len(self.arguments)} args)"
