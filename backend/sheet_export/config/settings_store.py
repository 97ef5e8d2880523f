"""
导出设置持久化 - 记住上次使用的命名规则/分隔符/输出目录

职责：
- 读写 storage_dir/BatchPrintSettings.json
- 命名规则预设（NamingRulePreset）导入导出

读取失败时回落到默认值（只记录告警，不中断对话框）；
预设文件由用户显式选择，解析失败抛出 ConfigError。
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from ..interfaces import ConfigError
from .runtime_config import RuntimeConfig, get_config

logger = logging.getLogger(__name__)


class ExportSettings(BaseModel):
    """上次导出设置"""
    last_naming_rule: str = "{Sheet Number}-{Sheet Name}"
    last_separator: str = "-"
    last_output_folder: str = ""


class NamingRulePreset(BaseModel):
    """命名规则预设"""
    rule: str = ""
    separator: str = "-"


class SettingsStore:
    """导出设置存储"""

    def __init__(self, settings_path: Path | None = None, config: RuntimeConfig | None = None):
        self.config = config or get_config()
        self.settings_path = settings_path or self.config.get_settings_path()

    def defaults(self) -> ExportSettings:
        naming = self.config.naming
        return ExportSettings(
            last_naming_rule=naming.default_rule,
            last_separator=naming.default_separator,
        )

    def load(self) -> ExportSettings:
        """加载设置（文件缺失或损坏时返回默认值）"""
        if not self.settings_path.exists():
            return self.defaults()

        try:
            with open(self.settings_path, encoding="utf-8") as f:
                settings = ExportSettings(**json.load(f))
        except (OSError, ValueError, TypeError, ValidationError) as e:
            logger.warning(f"导出设置读取失败，使用默认值: {self.settings_path}: {e}")
            return self.defaults()

        if not settings.last_naming_rule:
            settings.last_naming_rule = self.config.naming.default_rule
        if not settings.last_separator:
            settings.last_separator = self.config.naming.default_separator
        # 上次的输出目录已不存在则丢弃
        if settings.last_output_folder and not Path(settings.last_output_folder).is_dir():
            settings.last_output_folder = ""
        return settings

    def save(self, settings: ExportSettings) -> Path:
        """保存设置"""
        self.settings_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.settings_path, "w", encoding="utf-8") as f:
            json.dump(settings.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
        return self.settings_path

    def remember(self, naming_rule: str, separator: str, output_folder: Path | str) -> Path:
        """导出前记录本次参数"""
        return self.save(
            ExportSettings(
                last_naming_rule=naming_rule,
                last_separator=separator,
                last_output_folder=str(output_folder),
            )
        )


def save_preset(preset: NamingRulePreset, path: Path) -> Path:
    """保存命名规则预设"""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset.model_dump(mode="json"), f, ensure_ascii=False, indent=2)
    return path


def load_preset(path: Path) -> NamingRulePreset:
    """加载命名规则预设"""
    if not path.exists():
        raise ConfigError(f"预设文件不存在: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            return NamingRulePreset(**json.load(f))
    except (ValueError, TypeError, ValidationError) as e:
        raise ConfigError(f"预设文件格式错误: {path}: {e}") from e
