"""libclangを使用したCソースコード解析のラッパー。"""

from contextlib import contextmanager
from typing import Iterator, Optional
from pathlib import Path
import glob
import os
import logging

from ..models.compile_unit import CompileUnit

logger = logging.getLogger(__name__)


class ClangParseError(Exception):
    """Clangパース時のエラー。"""
    pass


@contextmanager
def working_directory(path: Optional[str]) -> Iterator[None]:
    """一時的にカレントディレクトリを変更する。

    コンパイルデータベースの相対 ``-I`` パスはコマンドのディレクトリ基準なので、
    パース中だけそこへ移動する。
    """
    if not path:
        yield
        return

    previous = os.getcwd()
    os.chdir(path)
    try:
        yield
    finally:
        os.chdir(previous)


class ClangAnalyzer:
    """libclangを使用したC解析のメインクラス。

    libclangをラップして、宣言の検査に必要な翻訳単位を構築する。
    翻訳単位はキャッシュせず、呼び出し側のスコープが終われば解放される。
    """

    # clang.cindexが定義していないCXTranslationUnit_KeepGoing
    PARSE_KEEP_GOING = 0x200

    # libclangが見つからない場合に探す場所
    COMMON_LIBRARY_GLOBS = [
        "/usr/lib/llvm-*/lib",
        "/usr/lib64/llvm*/lib64",
        "/usr/local/opt/llvm/lib",
        "/opt/homebrew/opt/llvm/lib",
    ]

    def __init__(self, library_path: Optional[str] = None):
        """Clangアナライザーを初期化する。

        Args:
            library_path: libclangライブラリのパス（任意、未指定時は自動検出）
        """
        self._setup_libclang(library_path)

        import clang.cindex as ci
        self._ci = ci

        self.index = ci.Index.create()

        logger.debug("ClangAnalyzer initialized")

    def _setup_libclang(self, library_path: Optional[str] = None) -> None:
        """libclangライブラリパスを設定する。

        Args:
            library_path: libclangへの明示的なパス（任意）

        Raises:
            ClangParseError: libclangを読み込めない場合
        """
        import clang.cindex as ci

        if library_path:
            if ci.Config.loaded:
                logger.debug(f"libclang already loaded, ignoring {library_path}")
            elif Path(library_path).is_file():
                ci.Config.set_library_file(library_path)
            else:
                ci.Config.set_library_path(library_path)
            return

        # pip install libclangでインストールされたライブラリを使用
        try:
            ci.Index.create()
            logger.debug("libclang loaded successfully")
        except ci.LibclangError as e:
            # 一般的なLLVMのインストール先を試す
            for pattern in self.COMMON_LIBRARY_GLOBS:
                for path in sorted(glob.glob(pattern), reverse=True):
                    if glob.glob(os.path.join(path, "libclang*")):
                        ci.Config.set_library_path(path)
                        logger.info(f"Using libclang from: {path}")
                        return

            raise ClangParseError(
                f"Failed to load libclang: {e}. "
                "Please install libclang with 'pip install libclang' or install LLVM."
            )

    @property
    def parse_options(self) -> int:
        """翻訳単位のパースオプション。

        関数本体は検査に不要なのでスキップし、
        一部のエラーでファイル全体の解析が中断しないようにする。
        """
        TranslationUnit = self._ci.TranslationUnit
        return (
            TranslationUnit.PARSE_SKIP_FUNCTION_BODIES
            | TranslationUnit.PARSE_INCLUDE_BRIEF_COMMENTS_IN_CODE_COMPLETION
            | self.PARSE_KEEP_GOING
        )

    def parse(self, unit: CompileUnit):
        """コンパイル単位から翻訳単位を構築する。

        Args:
            unit: ファイルパスと引数を持つコンパイル単位

        Returns:
            clang.cindex.TranslationUnit

        Raises:
            ClangParseError: 翻訳単位を構築できない場合
        """
        logger.debug(f"Parsing {unit.file_path} with {len(unit.arguments)} arguments")

        try:
            with working_directory(unit.directory):
                tu = self.index.parse(
                    unit.file_path,
                    args=unit.arguments,
                    options=self.parse_options
                )
        except self._ci.TranslationUnitLoadError as e:
            raise ClangParseError(
                f"failed to parse the translation unit {unit.file_path}: {e}"
            ) from e
        except OSError as e:
            raise ClangParseError(
                f"failed to change into {unit.directory}: {e}"
            ) from e

        # 診断情報をログ出力
        for diag in tu.diagnostics:
            if diag.severity >= self._ci.Diagnostic.Error:
                logger.warning(f"Parse error in {unit.file_path}: {diag.spelling}")

        return tu
