"""走査フェーズごとの解析コンテキストモデル。"""

from dataclasses import dataclass, field
from typing import List, Set

from .finding import Finding


@dataclass
class AnalysisContext:
    """宣言検査フェーズのファイル単位コンテキスト。

    ファイルごとに生成され、解析終了後に破棄される。
    """
    file_path: str
    findings: List[Finding] = field(default_factory=list)
    stop_requested: bool = False

    @property
    def issues(self) -> int:
        """このファイルで検出した指摘数。"""
        return len(self.findings)

    def record(self, finding: Finding) -> None:
        """指摘を記録する。

        Args:
            finding: 記録する指摘
        """
        self.findings.append(finding)


@dataclass
class ConfigTableContext:
    """設定テーブル走査フェーズのテーブル単位コンテキスト。"""
    table_name: str
    field_index: int
    names: Set[str] = field(default_factory=set)
    entries: int = 0

    def __str__(self) -> str:
        return (
            f"{self.table_name} (field #{self.field_index}, "
            f"{self.entries} entries, {len(self.names)} names)"
        )
