"""
配置层 - 运行期配置与导出设置持久化

职责：
- 加载 config/sheet_export.yaml（运行期参数，可被环境变量覆盖）
- 读写上次导出设置与命名规则预设
"""

from .runtime_config import RuntimeConfig, configure_logging, get_config, reload_config
from .settings_store import (
    ExportSettings,
    NamingRulePreset,
    SettingsStore,
    load_preset,
    save_preset,
)

__all__ = [
    "RuntimeConfig",
    "get_config",
    "reload_config",
    "configure_logging",
    "ExportSettings",
    "NamingRulePreset",
    "SettingsStore",
    "load_preset",
    "save_preset",
]
