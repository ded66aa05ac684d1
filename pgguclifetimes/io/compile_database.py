"""compile_commands.json (コンパイルデータベース) のアダプター。"""

from typing import Iterable, List, Optional, Set, Tuple
import os
import logging

from clang.cindex import CompilationDatabase, CompilationDatabaseError

from ..analyzer.path_filter import PathResolutionError, resolve_path
from ..models.compile_unit import CompileUnit

logger = logging.getLogger(__name__)


class DatabaseLoadError(Exception):
    """コンパイルデータベースを読み込めない場合のエラー。"""
    pass


class FileNotInDatabase(Exception):
    """ファイルがコンパイルデータベースに存在しない場合のエラー。"""
    pass


class CompileDatabase:
    """libclangのCompilationDatabaseのラッパー。

    コマンドごとにファイルの絶対パスを解決し、libclangに渡せる引数リストを作る。

    Attributes:
        directory: compile_commands.json を含むディレクトリ
    """

    # 意味解析に影響しない警告系の引数
    IGNORED_ARG_PREFIXES: Tuple[str, ...] = ("-W",)

    def __init__(
        self,
        database: CompilationDatabase,
        directory: str,
        ignored_arg_prefixes: Optional[Iterable[str]] = None
    ):
        """コンパイルデータベースを初期化する。

        Args:
            database: 読み込み済みのCompilationDatabase
            directory: データベースのディレクトリ
            ignored_arg_prefixes: 除外する引数のプレフィックス
        """
        self._database = database
        self.directory = directory
        if ignored_arg_prefixes is None:
            self.ignored_arg_prefixes = self.IGNORED_ARG_PREFIXES
        else:
            self.ignored_arg_prefixes = tuple(ignored_arg_prefixes)

        self._known_files: Set[str] = self._index_files()

    @classmethod
    def load(
        cls,
        directory: str,
        ignored_arg_prefixes: Optional[Iterable[str]] = None
    ) -> "CompileDatabase":
        """ディレクトリからコンパイルデータベースを読み込む。

        Args:
            directory: compile_commands.json を含むディレクトリ
            ignored_arg_prefixes: 除外する引数のプレフィックス

        Returns:
            CompileDatabaseインスタンス

        Raises:
            DatabaseLoadError: 有効なデータベースがない場合
        """
        try:
            database = CompilationDatabase.fromDirectory(directory)
        except CompilationDatabaseError as e:
            raise DatabaseLoadError(
                f"failed to load a compilation database from {directory}: {e}"
            ) from e

        logger.info(f"Using compilation database: {directory}")
        return cls(database, directory, ignored_arg_prefixes)

    def command_for(self, file_path: str):
        """ファイルのコンパイルコマンドを取得する。

        libclangはデータベースにないファイルにも近いエントリから推測したコマンドを返すため、
        compile_commands.json に実在するエントリだけを対象にする。

        Args:
            file_path: 解決済みの絶対ファイルパス

        Returns:
            最初のCompileCommand、存在しない場合はNone
        """
        if file_path not in self._known_files:
            return None

        commands = self._database.getCompileCommands(file_path)
        if commands is None:
            return None

        for command in commands:
            if self._matches(command, file_path):
                return command
        return None

    def _index_files(self) -> Set[str]:
        """データベースに登録されているファイルの解決済みパスを集める。"""
        known = set()
        for command in self.all_commands():
            try:
                known.add(self.resolve_file(command))
            except PathResolutionError:
                logger.debug(f"Entry {command.filename} does not exist")
        return known

    def _matches(self, command, file_path: str) -> bool:
        try:
            return self.resolve_file(command) == file_path
        except PathResolutionError:
            return False

    def require_command(self, file_path: str):
        """ファイルのコンパイルコマンドを取得する。

        Args:
            file_path: 解決済みの絶対ファイルパス

        Returns:
            CompileCommand

        Raises:
            FileNotInDatabase: データベースにファイルがない場合
        """
        command = self.command_for(file_path)
        if command is None:
            raise FileNotInDatabase(
                f"failed to find {file_path} in compilation database"
            )
        return command

    def all_commands(self) -> List:
        """データベース内の全コンパイルコマンドを取得する。

        Returns:
            CompileCommandのリスト
        """
        commands = self._database.getAllCompileCommands()
        if commands is None:
            return []
        return list(commands)

    @staticmethod
    def resolve_file(command) -> str:
        """コマンドのファイルを絶対パスに解決する。

        Meson/Ninjaはビルドディレクトリからの相対パスを記録するため、
        コマンドのディレクトリを基準に解決する。

        Args:
            command: CompileCommand

        Returns:
            絶対ファイルパス

        Raises:
            PathResolutionError: ファイルが存在しない場合
        """
        filename = command.filename
        if not os.path.isabs(filename) and command.directory:
            filename = os.path.join(command.directory, filename)
        return resolve_path(filename)

    def is_ignored_arg(self, arg: str) -> bool:
        """libclangのパースに役立たない引数かどうかを判定する。"""
        return arg.startswith(self.ignored_arg_prefixes)

    def resolved_args(self, command) -> List[str]:
        """libclangに渡す引数リストを作成する。

        先頭のコンパイラ実行ファイルと、データベースが末尾に付けるソースパスを除く。
        ソースパスは解決済みの絶対パスを別途libclangに渡す。

        Args:
            command: CompileCommand

        Returns:
            新しい引数リスト
        """
        args = list(command.arguments)[1:-1]
        return [arg for arg in args if not self.is_ignored_arg(arg)]

    def compile_unit(self, command) -> CompileUnit:
        """コマンドからコンパイル単位を作成する。

        Args:
            command: CompileCommand

        Returns:
            CompileUnit

        Raises:
            PathResolutionError: ファイルが存在しない場合
        """
        return CompileUnit(
            file_path=self.resolve_file(command),
            arguments=self.resolved_args(command),
            directory=command.directory or None
        )
