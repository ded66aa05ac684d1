"""モデルのテスト。"""

from pgguclifetimes.models import (
    AnalysisContext,
    ConfigTableContext,
    Finding,
    LifetimeTag,
    MISSING_ANNOTATION_MESSAGE,
    SourceLocation,
)


class TestLifetimeTag:
    """ライフタイム注釈の語彙テスト。"""

    def test_all_tags_recognized(self):
        """すべての注釈文字列がタグに変換されること。"""
        names = [
            "dynamic_singleton", "global", "internal_guc", "postmaster_guc",
            "session_guc", "session_local", "sighup_guc", "static_singleton",
            "suset_guc", "userset_guc",
        ]
        for name in names:
            tag = LifetimeTag.from_annotation(name)
            assert tag is not None
            assert tag.value == name

        assert len(LifetimeTag) == len(names)

    def test_exact_match_only(self):
        """完全一致以外は認識しないこと。"""
        assert LifetimeTag.from_annotation("Postmaster_GUC") is None
        assert LifetimeTag.from_annotation("postmaster_guc ") is None
        assert LifetimeTag.from_annotation("not_a_lifetime") is None
        assert LifetimeTag.from_annotation("") is None
        assert LifetimeTag.from_annotation(None) is None

    def test_descriptions(self):
        """すべてのタグが説明を持つこと。"""
        for tag in LifetimeTag:
            assert tag.description

        assert LifetimeTag.SESSION_LOCAL.description == "Session-local global"


class TestFinding:
    """指摘の書式テスト。"""

    def test_location_format(self):
        """ファイル:行:列 の形式になること。"""
        location = SourceLocation(file_path="/src/a/../b.c", line=3, column=5)
        assert str(location) == "/src/b.c:3:5"

        assert str(SourceLocation(file_path="/src/b.c", line=7)) == "/src/b.c:7"

    def test_finding_format(self):
        """指摘メッセージの形式。"""
        finding = Finding(
            location=SourceLocation(file_path="/src/b.c", line=3, column=5),
            variable="needs_all"
        )
        assert finding.message == MISSING_ANNOTATION_MESSAGE
        assert str(finding) == (
            "/src/b.c:3:5: needs_all is missing a lifetime annotation"
        )


class TestContexts:
    """走査コンテキストのテスト。"""

    def test_analysis_context_records(self):
        """指摘の記録と件数。"""
        context = AnalysisContext(file_path="/src/b.c")
        assert context.issues == 0
        assert not context.stop_requested

        context.record(Finding(SourceLocation("/src/b.c", 1, 5), "a"))
        context.record(Finding(SourceLocation("/src/b.c", 2, 5), "b"))

        assert context.issues == 2
        assert [f.variable for f in context.findings] == ["a", "b"]

    def test_contexts_are_independent(self):
        """コンテキスト間で指摘リストを共有しないこと。"""
        first = AnalysisContext(file_path="/src/a.c")
        second = AnalysisContext(file_path="/src/b.c")
        first.record(Finding(SourceLocation("/src/a.c", 1), "a"))

        assert second.issues == 0

    def test_config_table_context(self):
        """テーブルコンテキストの文字列表現。"""
        table = ConfigTableContext(table_name="ConfigureNamesInt", field_index=1)
        table.names.update({"work_mem", "max_connections"})
        table.entries = 3

        assert "ConfigureNamesInt" in str(table)
        assert "2 names" in str(table)
        assert "3 entries" in str(table)
