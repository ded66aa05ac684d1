"""テスト用のCソースツリーとコンパイルデータベース。"""

import json
import logging
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import List, Optional

import pytest


LIFETIMES_HEADER = """\
#ifndef LIFETIMES_H
#define LIFETIMES_H

#define NULL ((void *) 0)

#define dynamic_singleton __attribute__((annotate("dynamic_singleton")))
#define postmaster_guc __attribute__((annotate("postmaster_guc")))
#define session_guc __thread __attribute__((annotate("session_guc")))
#define session_local __thread __attribute__((annotate("session_local")))
#define static_singleton __attribute__((annotate("static_singleton")))

extern int header_global;

#endif
"""

GUC_TABLES_SOURCE = """\
#include "lifetimes.h"

struct config_generic
{
	const char *name;
	int			context;
};

struct config_bool
{
	struct config_generic gen;
	_Bool	   *variable_addr;
	_Bool		boot_val;
};

struct config_int
{
	struct config_generic gen;
	int		   *variable_addr;
	int			boot_val;
};

extern _Bool enable_seqscan;
extern int work_mem;
postmaster_guc extern int max_connections_address;

static_singleton struct config_bool ConfigureNamesBool[] =
{
	{{"enable_seqscan", 0}, &enable_seqscan, 1},
	{{NULL, 0}, NULL, 0}
};

static_singleton struct config_int ConfigureNamesInt[] =
{
	{{"work_mem", 0}, &work_mem, 4096},
	{{"max_connections", 0}, &max_connections_address, 100},
	{{NULL, 0}, NULL, 0}
};
"""

# 行番号はテストで参照する
EXAMPLE_SOURCE = """\
#include "lifetimes.h"

int needs_all;
static int static_needs_all;
extern int extern_needs_all;

postmaster_guc int ok;
static session_guc int static_ok;
dynamic_singleton char output_file_name[64];

__attribute__((annotate("not_a_lifetime"))) int wrong_annotation;
__attribute__((annotate("not_a_lifetime"))) session_local int second_annotation;

int yylval;
int work_mem;
_Bool enable_seqscan;

__thread int thread_needs_all;
static __thread int static_thread_needs_all;
extern __thread int extern_thread_needs_all;
__attribute__((__annotate__("session_local"))) __thread int dunder_annotated;

void
do_work(void)
{
	int local = 0;
	static int counter;

	counter += local;
}
"""

CLEAN_SOURCE = """\
#include "lifetimes.h"

postmaster_guc int ok;
static session_guc int static_ok;
int work_mem;
int yyleng;
"""

GUC_TABLES_PATH = "src/backend/utils/misc/guc_tables.c"
EXAMPLE_PATH = "src/backend/utils/init/example.c"
CLEAN_PATH = "src/backend/utils/init/clean.c"

EXPECTED_FINDINGS = [
    "needs_all",
    "static_needs_all",
    "extern_needs_all",
    "wrong_annotation",
    "thread_needs_all",
    "static_thread_needs_all",
    "extern_thread_needs_all",
]


class SourceTree:
    """一時ディレクトリ上のソースツリーとcompile_commands.json。"""

    DEFAULT_ARGS = [
        "-std=gnu11",
        "-Wall",
        "-Wno-unused-variable",
        "-I../src/include",
        "-c",
    ]

    def __init__(self, root: Path):
        self.root = root
        self.build_dir = root / "build"
        self.build_dir.mkdir(parents=True, exist_ok=True)
        self.entries: List[dict] = []
        self.add_file("src/include/lifetimes.h", LIFETIMES_HEADER)

    def add_file(self, relative_path: str, text: str) -> Path:
        """ファイルを書き込む（データベースには登録しない）。"""
        path = self.root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path

    def add_source(
        self,
        relative_path: str,
        text: str,
        args: Optional[List[str]] = None
    ) -> Path:
        """ソースファイルを書き込み、コンパイルコマンドを登録する。"""
        path = self.add_file(relative_path, text)
        arguments = ["cc"] + (args if args is not None else self.DEFAULT_ARGS) + [str(path)]
        self.entries.append({
            "directory": str(self.build_dir),
            "arguments": arguments,
            "file": str(path),
        })
        return path

    def write_database(self) -> Path:
        """compile_commands.json を書き出し、そのディレクトリを返す。"""
        (self.build_dir / "compile_commands.json").write_text(
            json.dumps(self.entries, indent=2)
        )
        return self.build_dir


@pytest.fixture
def tree():
    """ヘッダーだけを含む空のソースツリー。"""
    with TemporaryDirectory() as tmpdir:
        yield SourceTree(Path(tmpdir).resolve())


@pytest.fixture
def pg_tree(tree):
    """設定テーブルと注釈漏れのあるファイルを含むソースツリー。"""
    tree.add_source(GUC_TABLES_PATH, GUC_TABLES_SOURCE)
    tree.add_source(EXAMPLE_PATH, EXAMPLE_SOURCE)
    tree.write_database()
    return tree


@pytest.fixture
def clean_tree(tree):
    """注釈漏れのないソースツリー。"""
    tree.add_source(GUC_TABLES_PATH, GUC_TABLES_SOURCE)
    tree.add_source(CLEAN_PATH, CLEAN_SOURCE)
    tree.write_database()
    return tree


@pytest.fixture(autouse=True)
def restore_logging():
    """setup_logging が差し替えたルートロガーのハンドラーを戻す。"""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
