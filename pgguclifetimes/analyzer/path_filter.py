"""インクルード/除外パスによる解析対象ファイルの絞り込み。"""

from typing import Iterable, List, Optional
from pathlib import Path
import logging

logger = logging.getLogger(__name__)


class PathResolutionError(Exception):
    """パスを絶対パスに解決できない場合のエラー。"""
    pass


def resolve_path(path: str) -> str:
    """パスを正規化された絶対パスに解決する。

    Args:
        path: 相対または絶対パス

    Returns:
        シンボリックリンクを解決した絶対パス

    Raises:
        PathResolutionError: パスが存在しない場合
    """
    try:
        return str(Path(path).resolve(strict=True))
    except (OSError, RuntimeError) as e:
        raise PathResolutionError(f"failed to resolve {path}: {e}") from e


class PathFilter:
    """解析対象ファイルのスコープ判定。

    インクルードと除外が重なる場合はインクルードを優先する。
    例えば ``--include contrib/postgres_fdw --exclude contrib`` では
    除外側は冗長なので、エラーにせず除外リストから取り除く。
    """

    def __init__(
        self,
        includes: Optional[Iterable[str]] = None,
        excludes: Optional[Iterable[str]] = None
    ):
        """パスフィルターを初期化する。

        Args:
            includes: 解析対象に限定するパスのリスト
            excludes: 解析から除外するパスのリスト

        Raises:
            PathResolutionError: いずれかのパスが存在しない場合
        """
        self.includes: List[str] = [resolve_path(p) for p in includes or []]
        self.excludes: List[str] = self._normalize(
            self.includes,
            [resolve_path(p) for p in excludes or []]
        )

        logger.debug(
            f"PathFilter: {len(self.includes)} includes, "
            f"{len(self.excludes)} excludes"
        )

    @staticmethod
    def _normalize(includes: List[str], excludes: List[str]) -> List[str]:
        """インクルードに包含される除外エントリを取り除く。

        Args:
            includes: 解決済みインクルードパス
            excludes: 解決済み除外パス

        Returns:
            残った除外パスのリスト
        """
        kept = []
        for exclude in excludes:
            if any(include.startswith(exclude) for include in includes):
                logger.debug(f"Dropping exclude {exclude}: overridden by an include")
                continue
            kept.append(exclude)
        return kept

    def in_scope(self, file_path: str, force: bool = False) -> bool:
        """ファイルが解析対象かどうかを判定する。

        Args:
            file_path: 解決済みの絶対ファイルパス
            force: Trueの場合はフィルターを無視して常に対象とする

        Returns:
            解析対象の場合True
        """
        if force:
            return True

        if self.includes and not any(
            file_path.startswith(include) for include in self.includes
        ):
            return False

        return not any(file_path.startswith(exclude) for exclude in self.excludes)
