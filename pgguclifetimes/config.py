"""設定管理モジュール。"""

from dataclasses import MISSING, dataclass, field, fields
from typing import List, Dict, Optional, Any
from pathlib import Path
import os
import logging

import yaml

from .analyzer.annotation_checker import GENERATED_SYMBOL_PREFIX
from .analyzer.exception_extractor import (
    ADDRESS_FIELD,
    ADDRESS_SUFFIX,
    CONFIG_TABLE_NAMES,
    CONFIG_TABLE_SUFFIX,
)
from .io.compile_database import CompileDatabase

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """アプリケーション設定。"""

    # compile_commands.json を含むディレクトリ
    compdb_dir: str = ""

    # 明示的に解析するファイル（空の場合はデータベース全体）
    files: List[str] = field(default_factory=list)

    # パスフィルター
    include_paths: List[str] = field(default_factory=list)
    exclude_paths: List[str] = field(default_factory=list)

    # 実行モード
    fail_fast: bool = False
    quiet: bool = False

    # 設定テーブル
    config_table_suffix: str = CONFIG_TABLE_SUFFIX
    config_table_names: List[str] = field(
        default_factory=lambda: list(CONFIG_TABLE_NAMES)
    )
    address_field: str = ADDRESS_FIELD
    address_suffix: str = ADDRESS_SUFFIX

    # 宣言検査
    generated_symbol_prefix: str = GENERATED_SYMBOL_PREFIX
    ignored_arg_prefixes: List[str] = field(
        default_factory=lambda: list(CompileDatabase.IGNORED_ARG_PREFIXES)
    )

    # libclang
    libclang_path: Optional[str] = None

    # ロギング設定
    progress_interval: int = 100
    log_level: str = "WARNING"
    log_file: Optional[str] = None

    def __post_init__(self):
        if self.libclang_path is None:
            self.libclang_path = os.getenv("LIBCLANG_PATH")

    @property
    def effective_fail_fast(self) -> bool:
        """quietモードはfail-fastを含む。"""
        return self.fail_fast or self.quiet

    @classmethod
    def from_yaml(cls, file_path: str) -> "Config":
        """YAMLファイルから設定を読み込む。

        Args:
            file_path: YAML設定ファイルのパス

        Returns:
            Configインスタンス

        Raises:
            ValueError: 設定の形式が不正な場合
        """
        with open(file_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ValueError(f"{file_path}: top level must be a mapping")

        config = cls.from_dict(data)

        # libclangのパス（環境変数が優先）
        config.libclang_path = os.getenv(
            "LIBCLANG_PATH",
            data.get("libclang_path")
        )

        logger.info(f"Configuration loaded from {file_path}")
        return config

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """辞書から設定を作成する。

        Args:
            data: 設定辞書

        Returns:
            Configインスタンス

        Raises:
            ValueError: リスト型の項目にリスト以外の値が指定された場合
        """
        config = cls()
        known = {f.name: f for f in fields(cls)}

        for key, value in data.items():
            if key not in known:
                logger.warning(f"Unknown configuration key: {key}")
                continue

            if known[key].default_factory is not MISSING and not isinstance(value, list):
                raise ValueError(f"{key} must be a list, got {type(value).__name__}")

            setattr(config, key, value)

        return config

    def validate(self) -> List[str]:
        """設定を検証する。

        Returns:
            検証エラーのリスト（有効な場合は空）
        """
        errors = []

        if not self.compdb_dir:
            errors.append("compdb_dir is required")
        elif not Path(self.compdb_dir).is_dir():
            errors.append(f"compilation database directory does not exist: {self.compdb_dir}")

        if not self.config_table_suffix:
            errors.append("config_table_suffix must not be empty")
        if not self.config_table_names:
            errors.append("config_table_names must not be empty")
        if not self.address_field:
            errors.append("address_field must not be empty")

        if self.progress_interval < 1:
            errors.append("progress_interval must be at least 1")

        if self.log_level.upper() not in LOG_LEVELS:
            errors.append(f"unknown log_level: {self.log_level}")

        return errors

    def to_dict(self) -> Dict[str, Any]:
        """設定を辞書に変換する。

        Returns:
            辞書形式の設定
        """
        return {
            "compdb_dir": self.compdb_dir,
            "files": self.files,
            "include_paths": self.include_paths,
            "exclude_paths": self.exclude_paths,
            "fail_fast": self.fail_fast,
            "quiet": self.quiet,
            "config_table_suffix": self.config_table_suffix,
            "config_table_names": self.config_table_names,
            "address_field": self.address_field,
            "address_suffix": self.address_suffix,
            "generated_symbol_prefix": self.generated_symbol_prefix,
            "ignored_arg_prefixes": self.ignored_arg_prefixes,
            "libclang_path": self.libclang_path,
            "progress_interval": self.progress_interval,
            "log_level": self.log_level,
            "log_file": self.log_file,
        }
