"""検査結果の出力。"""

from typing import Optional, TextIO
import sys
import logging

from ..models.finding import Finding

logger = logging.getLogger(__name__)


class Reporter:
    """指摘を標準エラー出力へ書き出す。

    quietモードでは何も出力しない。
    """

    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False):
        """レポーターを初期化する。

        Args:
            stream: 出力先（省略時は書き込み時点のsys.stderr）
            quiet: Trueの場合は出力しない
        """
        self._stream = stream
        self.quiet = quiet

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def report(self, finding: Finding) -> None:
        """1件の指摘を出力する。

        Args:
            finding: 出力する指摘
        """
        if self.quiet:
            return

        print(str(finding), file=self.stream)

    def summarize(self, issues: int, files: int) -> None:
        """検査結果の要約を出力する。

        Args:
            issues: 指摘の総数
            files: 解析したファイル数
        """
        logger.info(f"Analyzed {files} files, {issues} issues")

        if self.quiet or issues == 0:
            return

        noun = "variable is" if issues == 1 else "variables are"
        print(
            f"{issues} global {noun} missing a lifetime annotation",
            file=self.stream
        )
