"""設定テーブルからの例外抽出のテスト。"""

import pytest

from pgguclifetimes.analyzer.clang_analyzer import ClangAnalyzer
from pgguclifetimes.analyzer.exception_extractor import (
    ConfigTableError,
    ConfigTableNotFound,
    ExceptionSetExtractor,
    strip_suffix,
)
from pgguclifetimes.io.compile_database import CompileDatabase

from conftest import EXAMPLE_PATH, EXAMPLE_SOURCE, GUC_TABLES_PATH

TABLE_PREAMBLE = """\
#include "lifetimes.h"

struct config_int
{
	const char *name;
	int		   *variable_addr;
};

struct config_plain
{
	const char *name;
	int			value;
};
"""


def _extractor(tree) -> ExceptionSetExtractor:
    database = CompileDatabase.load(str(tree.build_dir))
    return ExceptionSetExtractor(ClangAnalyzer(), database)


class TestStripSuffix:
    """サフィックス除去のテスト。"""

    def test_strip(self):
        """末尾のサフィックスだけを取り除くこと。"""
        assert strip_suffix("max_connections_address") == "max_connections"
        assert strip_suffix("work_mem") == "work_mem"
        assert strip_suffix("address_of_thing") == "address_of_thing"

    def test_suffix_only(self):
        """サフィックスだけの名前はそのままであること。"""
        assert strip_suffix("_address") == "_address"

    def test_custom_suffix(self):
        """サフィックスを変更できること。"""
        assert strip_suffix("shared_buffers_ptr", "_ptr") == "shared_buffers"
        assert strip_suffix("shared_buffers_ptr", "") == "shared_buffers_ptr"


class TestExceptionSetExtractor:
    """設定テーブル走査のテスト。"""

    def test_extract(self, pg_tree):
        """すべてのテーブルから変数名を収集すること。"""
        names = _extractor(pg_tree).extract()

        assert names == frozenset({"enable_seqscan", "work_mem", "max_connections"})

    def test_find_config_table(self, pg_tree):
        """パス末尾で設定テーブルのファイルを見つけること。"""
        command = _extractor(pg_tree).find_config_table()

        assert command.filename == str(pg_tree.root / GUC_TABLES_PATH)

    def test_config_table_not_found(self, tree):
        """設定テーブルがない場合はエラーになること。"""
        tree.add_source(EXAMPLE_PATH, EXAMPLE_SOURCE)
        tree.write_database()

        with pytest.raises(ConfigTableNotFound) as excinfo:
            _extractor(tree).extract()

        assert "guc_tables.c" in str(excinfo.value)

    def test_table_without_address_field(self, tree):
        """アドレスフィールドのないテーブルは読み飛ばすこと。"""
        tree.add_source(
            GUC_TABLES_PATH,
            TABLE_PREAMBLE
            + "\n"
            "extern int work_mem;\n"
            "\n"
            "struct config_plain ConfigureNamesReal[] =\n"
            "{\n"
            "\t{\"ignored\", 1},\n"
            "\t{NULL, 0}\n"
            "};\n"
            "\n"
            "struct config_int ConfigureNamesInt[] =\n"
            "{\n"
            "\t{\"work_mem\", &work_mem},\n"
            "\t{NULL, NULL}\n"
            "};\n"
        )
        tree.write_database()

        assert _extractor(tree).extract() == frozenset({"work_mem"})

    def test_other_arrays_ignored(self, tree):
        """設定テーブル名以外の配列は読まないこと。"""
        tree.add_source(
            GUC_TABLES_PATH,
            TABLE_PREAMBLE
            + "\n"
            "extern int work_mem;\n"
            "extern int not_a_guc;\n"
            "\n"
            "struct config_int SomethingElse[] =\n"
            "{\n"
            "\t{\"not_a_guc\", &not_a_guc},\n"
            "};\n"
            "\n"
            "struct config_int ConfigureNamesInt[] =\n"
            "{\n"
            "\t{\"work_mem\", &work_mem},\n"
            "};\n"
        )
        tree.write_database()

        assert _extractor(tree).extract() == frozenset({"work_mem"})

    def test_unexpected_address_initializer(self, tree):
        """変数参照でないアドレス式はエラーになること。"""
        tree.add_source(
            GUC_TABLES_PATH,
            TABLE_PREAMBLE
            + "\n"
            "static struct { int value; } holder;\n"
            "\n"
            "struct config_int ConfigureNamesInt[] =\n"
            "{\n"
            "\t{\"holder\", &holder.value},\n"
            "\t{NULL, NULL}\n"
            "};\n"
        )
        tree.write_database()

        with pytest.raises(ConfigTableError) as excinfo:
            _extractor(tree).extract()

        assert "variable_addr" in str(excinfo.value)
