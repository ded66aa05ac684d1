"""設定テーブル (guc_tables.c) からの例外変数名の抽出。

GUC変数のライフタイムは設定テーブルのエントリ側で注釈されているため、
テーブルに登録されている変数は宣言箇所での注釈を要求しない。
"""

from typing import FrozenSet, Iterable, Optional, Set
import logging

from clang.cindex import CursorKind

from ..models.context import ConfigTableContext
from .annotation_checker import has_global_storage
from .clang_analyzer import ClangAnalyzer

logger = logging.getLogger(__name__)

CONFIG_TABLE_SUFFIX = "src/backend/utils/misc/guc_tables.c"

CONFIG_TABLE_NAMES = (
    "ConfigureNamesBool",
    "ConfigureNamesEnum",
    "ConfigureNamesInt",
    "ConfigureNamesReal",
    "ConfigureNamesString",
)

ADDRESS_FIELD = "variable_addr"

ADDRESS_SUFFIX = "_address"

# 初期化子を包むだけの式
_WRAPPER_KINDS = (CursorKind.UNEXPOSED_EXPR, CursorKind.PAREN_EXPR)


class ConfigTableNotFound(Exception):
    """コンパイルデータベースに設定テーブルのファイルがない場合のエラー。

    拡張モジュールなど、本体のソースツリー以外を解析しようとしている可能性が高い。
    """
    pass


class ConfigTableError(Exception):
    """設定テーブルのエントリが想定外の形をしている場合のエラー。"""
    pass


def strip_suffix(name: str, suffix: str = ADDRESS_SUFFIX) -> str:
    """変数名の末尾のサフィックスを取り除く。

    Args:
        name: 変数名
        suffix: 取り除くサフィックス

    Returns:
        サフィックスを除いた変数名（一致しない場合はそのまま）
    """
    if suffix and name.endswith(suffix) and len(name) > len(suffix):
        return name[:-len(suffix)]
    return name


def _unwrap(cursor):
    """暗黙のキャストや括弧を剥がした式を返す。"""
    while cursor.kind in _WRAPPER_KINDS:
        children = list(cursor.get_children())
        if len(children) != 1:
            break
        cursor = children[0]
    return cursor


class ExceptionSetExtractor:
    """設定テーブルに登録された変数名を収集する。"""

    def __init__(
        self,
        clang_analyzer: ClangAnalyzer,
        database,
        table_suffix: str = CONFIG_TABLE_SUFFIX,
        table_names: Optional[Iterable[str]] = None,
        address_field: str = ADDRESS_FIELD,
        address_suffix: str = ADDRESS_SUFFIX
    ):
        """抽出器を初期化する。

        Args:
            clang_analyzer: ClangAnalyzerインスタンス
            database: CompileDatabaseインスタンス
            table_suffix: 設定テーブルのソースファイルのパス末尾
            table_names: 設定テーブル配列の変数名
            address_field: 変数アドレスを保持するフィールド名
            address_suffix: 変数名から取り除くサフィックス
        """
        self.analyzer = clang_analyzer
        self.database = database
        self.table_suffix = table_suffix
        self.table_names = frozenset(table_names or CONFIG_TABLE_NAMES)
        self.address_field = address_field
        self.address_suffix = address_suffix

    def find_config_table(self):
        """設定テーブルのコンパイルコマンドを探す。

        Returns:
            CompileCommand

        Raises:
            ConfigTableNotFound: データベースに設定テーブルがない場合
        """
        for command in self.database.all_commands():
            if command.filename.endswith(self.table_suffix):
                return command

        raise ConfigTableNotFound(
            f"failed to find {self.table_suffix} in compilation database"
        )

    def extract(self) -> FrozenSet[str]:
        """設定テーブルをパースして例外変数名を収集する。

        パスフィルターに関係なく常に解析する。

        Returns:
            例外変数名の集合

        Raises:
            ConfigTableNotFound: データベースに設定テーブルがない場合
            ConfigTableError: エントリが想定外の形をしている場合
            ClangParseError: 設定テーブルをパースできない場合
        """
        command = self.find_config_table()
        unit = self.database.compile_unit(command)

        logger.info(f"Reading configuration tables from {unit.file_path}")
        tu = self.analyzer.parse(unit)

        names: Set[str] = set()
        for cursor in tu.cursor.get_children():
            if cursor.kind != CursorKind.VAR_DECL:
                continue
            if cursor.spelling not in self.table_names:
                continue
            if not has_global_storage(cursor):
                continue

            table = self.read_table(cursor)
            if table is not None:
                logger.debug(f"Read {table}")
                names.update(table.names)

        logger.info(f"Collected {len(names)} configuration variables")
        return frozenset(names)

    def address_field_index(self, table_cursor) -> Optional[int]:
        """テーブル要素の構造体で変数アドレスを持つフィールドの位置を返す。

        Args:
            table_cursor: テーブル配列のVAR_DECLカーソル

        Returns:
            フィールドの位置、見つからない場合はNone
        """
        element_type = table_cursor.type.get_array_element_type().get_canonical()

        for index, field in enumerate(element_type.get_fields()):
            if field.spelling == self.address_field:
                return index

        return None

    def read_table(self, table_cursor) -> Optional[ConfigTableContext]:
        """テーブル配列の初期化子から変数名を収集する。

        Args:
            table_cursor: テーブル配列のVAR_DECLカーソル

        Returns:
            収集結果のConfigTableContext、アドレスフィールドがない場合はNone
        """
        field_index = self.address_field_index(table_cursor)
        if field_index is None:
            logger.warning(
                f"{table_cursor.spelling}: element type has no "
                f"{self.address_field} field, skipping"
            )
            return None

        table = ConfigTableContext(
            table_name=table_cursor.spelling,
            field_index=field_index
        )

        for child in table_cursor.get_children():
            if child.kind != CursorKind.INIT_LIST_EXPR:
                continue

            for entry in child.get_children():
                if entry.kind != CursorKind.INIT_LIST_EXPR:
                    continue

                table.entries += 1
                name = self.entry_variable(entry, field_index)
                if name is not None:
                    table.names.add(strip_suffix(name, self.address_suffix))

        return table

    def entry_variable(self, entry, field_index: int) -> Optional[str]:
        """1エントリの初期化子から変数名を取り出す。

        Args:
            entry: エントリのINIT_LIST_EXPRカーソル
            field_index: アドレスフィールドの位置

        Returns:
            変数名、NULL終端などアドレス式でない場合はNone

        Raises:
            ConfigTableError: アドレス式が変数参照を含まない場合
        """
        for index, value in enumerate(entry.get_children()):
            if index != field_index:
                continue

            value = _unwrap(value)

            # 配列末尾のNULL終端
            if value.kind != CursorKind.UNARY_OPERATOR:
                return None

            for operand in value.get_children():
                operand = _unwrap(operand)
                if operand.kind == CursorKind.DECL_REF_EXPR:
                    return operand.spelling

            location = value.location
            raise ConfigTableError(
                f"{location.file}:{location.line}:{location.column}: "
                f"unexpected {self.address_field} initializer"
            )

        return None
