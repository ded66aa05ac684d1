"""グローバル変数のライフタイム注釈モデル。"""

from enum import Enum
from typing import Optional


class LifetimeTag(Enum):
    """認識されるライフタイム注釈の語彙。"""
    DYNAMIC_SINGLETON = "dynamic_singleton"
    GLOBAL = "global"
    INTERNAL_GUC = "internal_guc"
    POSTMASTER_GUC = "postmaster_guc"
    SESSION_GUC = "session_guc"
    SESSION_LOCAL = "session_local"
    SIGHUP_GUC = "sighup_guc"
    STATIC_SINGLETON = "static_singleton"
    SUSET_GUC = "suset_guc"
    USERSET_GUC = "userset_guc"

    @classmethod
    def from_annotation(cls, text: Optional[str]) -> Optional["LifetimeTag"]:
        """注釈文字列に完全一致するタグを返す。

        Args:
            text: annotate属性の文字列

        Returns:
            一致したLifetimeTag、一致しない場合はNone
        """
        if not text:
            return None

        try:
            return cls(text)
        except ValueError:
            return None

    @property
    def description(self) -> str:
        """ヘルプ表示用の説明。"""
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    LifetimeTag.DYNAMIC_SINGLETON: "Singleton that is set permanently at runtime",
    LifetimeTag.GLOBAL: "Process-wide global shared by every session",
    LifetimeTag.INTERNAL_GUC: "Internal GUC",
    LifetimeTag.POSTMASTER_GUC: "Postmaster GUC",
    LifetimeTag.SESSION_GUC: "Session GUC",
    LifetimeTag.SESSION_LOCAL: "Session-local global",
    LifetimeTag.SIGHUP_GUC: "SIGHUP GUC",
    LifetimeTag.STATIC_SINGLETON: "Singleton that is set at compile time",
    LifetimeTag.SUSET_GUC: "Superuser-settable GUC",
    LifetimeTag.USERSET_GUC: "User-settable GUC",
}
