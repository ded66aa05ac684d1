"""GUCライフタイム注釈検査ツールのメインエントリーポイント。"""

import argparse
import sys
from enum import IntEnum
from pathlib import Path
from typing import Iterator, List, Optional
from dataclasses import dataclass
import logging

import yaml

from .config import Config
from .analyzer.clang_analyzer import ClangAnalyzer, ClangParseError
from .analyzer.path_filter import PathFilter, PathResolutionError, resolve_path
from .analyzer.annotation_checker import AnnotationChecker
from .analyzer.exception_extractor import (
    ExceptionSetExtractor,
    ConfigTableNotFound,
    ConfigTableError,
)
from .io.compile_database import CompileDatabase, DatabaseLoadError, FileNotInDatabase
from .io.reporter import Reporter
from .models.context import AnalysisContext
from .models.lifetime import LifetimeTag
from .utils.logger import setup_logging, ProgressLogger

logger = logging.getLogger(__name__)

PROG = "pgguclifetimes"


class ExitCode(IntEnum):
    """プロセスの終了コード。"""
    SUCCESS = 0
    ISSUES_FOUND = 1
    TOOL_ERROR = 2
    PARSE_FAILURE = 3


# 実行全体を中断するエラー
FATAL_ERRORS = (
    PathResolutionError,
    DatabaseLoadError,
    FileNotInDatabase,
    ConfigTableNotFound,
    ConfigTableError,
    ClangParseError,
)


@dataclass
class RunStatistics:
    """実行統計情報。"""
    files_analyzed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    issues: int = 0


class LifetimeChecker:
    """ライフタイム注釈検査のメインクラス。"""

    def __init__(self, config: Config, reporter: Optional[Reporter] = None):
        """検査器を初期化する。

        Args:
            config: アプリケーション設定
            reporter: 指摘の出力先（省略時は標準エラー出力）

        Raises:
            PathResolutionError: 対象ファイルやフィルターのパスが存在しない場合
            DatabaseLoadError: コンパイルデータベースを読み込めない場合
            ClangParseError: libclangを読み込めない場合
        """
        self.config = config
        self.stats = RunStatistics()
        self.reporter = reporter or Reporter(quiet=config.quiet)

        self._init_components()

    def _init_components(self) -> None:
        """すべてのコンポーネントを初期化する。"""
        # データベースのディレクトリへ移動する前に解決する
        self.target_files = [resolve_path(f) for f in self.config.files]

        self.path_filter = PathFilter(
            includes=self.config.include_paths,
            excludes=self.config.exclude_paths
        )

        # libclangはデータベースより先に設定する
        self.clang_analyzer = ClangAnalyzer(library_path=self.config.libclang_path)

        self.database = CompileDatabase.load(
            self.config.compdb_dir,
            ignored_arg_prefixes=self.config.ignored_arg_prefixes
        )

        self.extractor = ExceptionSetExtractor(
            clang_analyzer=self.clang_analyzer,
            database=self.database,
            table_suffix=self.config.config_table_suffix,
            table_names=self.config.config_table_names,
            address_field=self.config.address_field,
            address_suffix=self.config.address_suffix
        )

        logger.debug("All components initialized")

    def run(self) -> ExitCode:
        """検査を実行する。

        Returns:
            終了コード

        Raises:
            ConfigTableNotFound: 設定テーブルが見つからない場合
            FileNotInDatabase: 対象ファイルがデータベースにない場合
        """
        try:
            exception_names = self.extractor.extract()
        except ClangParseError as e:
            raise ConfigTableError(str(e)) from e

        checker = AnnotationChecker(
            clang_analyzer=self.clang_analyzer,
            exception_names=exception_names,
            fail_fast=self.config.effective_fail_fast,
            generated_prefix=self.config.generated_symbol_prefix,
            on_finding=self.reporter.report
        )

        commands = list(self._commands())
        progress = ProgressLogger(
            len(commands), logger, log_interval=self.config.progress_interval
        )

        for command in commands:
            stop = self._analyze_command(checker, command)
            progress.update(command.filename)
            if stop:
                logger.debug("Stopping after the first failure")
                break

        progress.complete()
        self.reporter.summarize(self.stats.issues, self.stats.files_analyzed)
        self._log_statistics()

        return self.exit_code()

    def _commands(self) -> Iterator:
        """解析するコンパイルコマンドを列挙する。

        明示的なファイルはデータベースに存在しなければならない。
        どちらの場合もパスフィルターは解析時に適用する。

        Yields:
            CompileCommand
        """
        if self.target_files:
            for file_path in self.target_files:
                yield self.database.require_command(file_path)
        else:
            for command in self.database.all_commands():
                yield command

    def _analyze_command(self, checker: AnnotationChecker, command) -> bool:
        """1ファイルを解析する。

        Args:
            checker: AnnotationCheckerインスタンス
            command: CompileCommand

        Returns:
            実行を中断すべき場合True
        """
        fail_fast = self.config.effective_fail_fast

        try:
            unit = self.database.compile_unit(command)
        except PathResolutionError as e:
            logger.error(str(e))
            self.stats.files_failed += 1
            return fail_fast

        # インクルード外、または除外されたファイル
        if not self.path_filter.in_scope(unit.file_path):
            self.stats.files_skipped += 1
            return False

        context = AnalysisContext(file_path=unit.file_path)
        try:
            checker.analyze(unit, context)
        except ClangParseError as e:
            logger.error(str(e))
            self.stats.files_failed += 1
            return fail_fast

        self.stats.files_analyzed += 1
        self.stats.issues += context.issues

        return context.stop_requested

    def exit_code(self) -> ExitCode:
        """統計から終了コードを決定する。"""
        if self.stats.files_failed:
            return ExitCode.PARSE_FAILURE
        if self.stats.issues:
            return ExitCode.ISSUES_FOUND
        return ExitCode.SUCCESS

    def _log_statistics(self) -> None:
        """実行統計をログ出力する。"""
        logger.info("=" * 50)
        logger.info("Run Statistics:")
        logger.info(f"  Files analyzed: {self.stats.files_analyzed}")
        logger.info(f"  Files skipped: {self.stats.files_skipped}")
        logger.info(f"  Files failed: {self.stats.files_failed}")
        logger.info(f"  Issues: {self.stats.issues}")
        logger.info("=" * 50)


def _lifetimes_epilog() -> str:
    """ヘルプ末尾のライフタイム注釈の説明。"""
    lines = [
        "GUC Lifetimes:",
        "  A GUC lifetime annotation looks like:",
        "",
        "      static postmaster_guc int my_global = 0;",
        "",
    ]
    width = max(len(tag.value) for tag in LifetimeTag)
    for tag in LifetimeTag:
        lines.append(f"  {tag.value + ':':<{width + 1}} {tag.description}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    """コマンドライン引数パーサーを構築する。"""
    parser = argparse.ArgumentParser(
        prog=PROG,
        description=(
            "pgguclifetimes is a tool for checking if GUCs have had their "
            "lifetimes annotated."
        ),
        epilog=_lifetimes_epilog(),
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument(
        "compdb_dir",
        metavar="COMPDB_DIR",
        help="directory containing compile_commands.json"
    )
    parser.add_argument(
        "files",
        metavar="FILE",
        nargs="*",
        help="analyze only these files"
    )
    parser.add_argument(
        "-1",
        dest="fail_fast",
        action="store_true",
        help="fail after the first error"
    )
    parser.add_argument(
        "-e", "--exclude",
        metavar="PATH",
        action="append",
        default=[],
        help="exclude a path"
    )
    parser.add_argument(
        "-i", "--include",
        metavar="PATH",
        action="append",
        default=[],
        help="include a path"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="output nothing on error, implies -1"
    )
    parser.add_argument(
        "-c", "--config",
        metavar="PATH",
        help="YAML configuration file"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="enable debug logging"
    )
    parser.add_argument(
        "--log-file",
        metavar="PATH",
        help="also write the log to a file"
    )
    return parser


def _config_from_args(args: argparse.Namespace) -> Config:
    """設定ファイルにコマンドライン引数を重ねる。

    Args:
        args: パース済みの引数

    Returns:
        Configインスタンス
    """
    config = Config.from_yaml(args.config) if args.config else Config()

    config.compdb_dir = args.compdb_dir
    config.files = list(args.files)
    config.include_paths = list(config.include_paths) + args.include
    config.exclude_paths = list(config.exclude_paths) + args.exclude
    config.fail_fast = config.fail_fast or args.fail_fast
    config.quiet = config.quiet or args.quiet

    if args.verbose:
        config.log_level = "DEBUG"
    if config.quiet:
        config.log_level = "CRITICAL"
    if args.log_file:
        config.log_file = args.log_file

    return config


def main(argv: Optional[List[str]] = None) -> int:
    """メインエントリーポイント。

    Args:
        argv: コマンドライン引数（省略時はsys.argv）

    Returns:
        終了コード
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.config and not Path(args.config).exists():
        print(f"Error: configuration file not found: {args.config}", file=sys.stderr)
        return ExitCode.TOOL_ERROR

    try:
        config = _config_from_args(args)
    except (OSError, ValueError, yaml.YAMLError) as e:
        print(f"Error: failed to read {args.config}: {e}", file=sys.stderr)
        return ExitCode.TOOL_ERROR

    setup_logging(level=config.log_level, log_file=config.log_file)

    errors = config.validate()
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        return ExitCode.TOOL_ERROR

    try:
        checker = LifetimeChecker(config)
        return checker.run()
    except FATAL_ERRORS as e:
        logger.error(str(e))
        return ExitCode.TOOL_ERROR
    except MemoryError:
        logger.error("out of memory")
        return ExitCode.TOOL_ERROR


if __name__ == "__main__":
    sys.exit(main())
