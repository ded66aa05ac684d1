"""グローバル変数宣言のライフタイム注釈検査。"""

from typing import Callable, FrozenSet, Iterable, List, Optional
import os
import logging

from clang.cindex import CursorKind, StorageClass

from ..models.context import AnalysisContext
from ..models.compile_unit import CompileUnit
from ..models.finding import Finding
from ..models.lifetime import LifetimeTag
from .clang_analyzer import ClangAnalyzer

logger = logging.getLogger(__name__)

# flex/bisonが生成するシンボルのプレフィックス
GENERATED_SYMBOL_PREFIX = "yy"


def has_global_storage(cursor) -> bool:
    """変数宣言が静的記憶域期間を持つかどうかを判定する。

    ファイルスコープの変数は常に対象。ブロックスコープではstatic/externのみ。

    Args:
        cursor: VAR_DECLカーソル

    Returns:
        グローバル記憶域の場合True
    """
    parent = cursor.semantic_parent
    if parent is None or parent.kind == CursorKind.TRANSLATION_UNIT:
        return True

    return cursor.storage_class in (StorageClass.STATIC, StorageClass.EXTERN)


def find_lifetime(cursor) -> Optional[LifetimeTag]:
    """宣言に付いている最初の認識可能なライフタイム注釈を返す。

    Args:
        cursor: 宣言カーソル

    Returns:
        LifetimeTag、注釈がない場合はNone
    """
    for child in cursor.get_children():
        if child.kind != CursorKind.ANNOTATE_ATTR:
            continue

        tag = LifetimeTag.from_annotation(child.spelling)
        if tag is not None:
            return tag

    return None


class AnnotationChecker:
    """翻訳単位のトップレベル変数宣言を検査する。"""

    def __init__(
        self,
        clang_analyzer: ClangAnalyzer,
        exception_names: Optional[Iterable[str]] = None,
        fail_fast: bool = False,
        generated_prefix: str = GENERATED_SYMBOL_PREFIX,
        on_finding: Optional[Callable[[Finding], None]] = None
    ):
        """注釈チェッカーを初期化する。

        Args:
            clang_analyzer: ClangAnalyzerインスタンス
            exception_names: 検査対象外の変数名（設定テーブルに登録済みの変数）
            fail_fast: 最初の指摘で走査を止めるかどうか
            generated_prefix: 生成コードのシンボルプレフィックス
            on_finding: 指摘ごとに呼ばれるコールバック
        """
        self.analyzer = clang_analyzer
        self.exception_names: FrozenSet[str] = frozenset(exception_names or ())
        self.fail_fast = fail_fast
        self.generated_prefix = generated_prefix
        self.on_finding = on_finding

    def analyze(self, unit: CompileUnit, context: Optional[AnalysisContext] = None) -> AnalysisContext:
        """ファイルをパースしてグローバル変数を検査する。

        Args:
            unit: 解析するコンパイル単位
            context: 使用するコンテキスト（省略時は新規作成）

        Returns:
            指摘を記録したAnalysisContext

        Raises:
            ClangParseError: 翻訳単位を構築できない場合
        """
        if context is None:
            context = AnalysisContext(file_path=unit.file_path)

        tu = self.analyzer.parse(unit)
        self.check_translation_unit(tu, context)

        logger.debug(f"{unit.file_path}: {context.issues} issues")
        return context

    def check_translation_unit(self, tu, context: AnalysisContext) -> List[Finding]:
        """翻訳単位のトップレベル宣言を走査する。

        Args:
            tu: clang.cindex.TranslationUnit
            context: 指摘を記録するコンテキスト

        Returns:
            このファイルで検出した指摘のリスト
        """
        main_file = os.path.normpath(tu.spelling)

        for cursor in tu.cursor.get_children():
            if cursor.kind != CursorKind.VAR_DECL:
                continue

            finding = self.check_variable(cursor, main_file)
            if finding is None:
                continue

            context.record(finding)
            if self.on_finding is not None:
                self.on_finding(finding)

            if self.fail_fast:
                context.stop_requested = True
                break

        return context.findings

    def check_variable(self, cursor, main_file: str) -> Optional[Finding]:
        """変数宣言を検査する。

        Args:
            cursor: VAR_DECLカーソル
            main_file: 翻訳単位のメインファイルパス

        Returns:
            注釈がない場合はFinding、それ以外はNone
        """
        # ヘッダー内の宣言は対象外
        if not self._is_from_main_file(cursor, main_file):
            return None

        if not has_global_storage(cursor):
            return None

        name = cursor.spelling

        # flex/bisonの生成コードには注釈を付けられない
        if self.generated_prefix and name.startswith(self.generated_prefix):
            return None

        # GUCのライフタイムは設定テーブル側で注釈されている
        if name in self.exception_names:
            return None

        tag = find_lifetime(cursor)
        if tag is not None:
            logger.debug(f"{name}: {tag.value}")
            return None

        return Finding.from_cursor(cursor)

    @staticmethod
    def _is_from_main_file(cursor, main_file: str) -> bool:
        location = cursor.location
        if location.file is None:
            return False
        return os.path.normpath(location.file.name) == main_file
